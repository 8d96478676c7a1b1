"""Internal implementation of the inference engine. Not a public API."""
