"""Business services of the flower shop backend."""
