"""Domain layer: money math, events, interfaces and exceptions."""
