"""HTTP surface for the traffic incident session."""
