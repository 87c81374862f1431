"""Read access to placed orders."""
