"""Infrastructure: brokerage adapters."""
