"""HTTP layer: routes and dependency wiring."""
