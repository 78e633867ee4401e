"""Payment intent state machine: creation, event application and status queries."""
