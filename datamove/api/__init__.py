"""HTTP API for the plan compiler."""
