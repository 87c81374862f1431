"""Shopping cart storage and maintenance."""
