"""Background workers: interval scheduler and the simulation loop."""
