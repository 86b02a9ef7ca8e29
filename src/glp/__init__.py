"""GameLearn learning-progress service."""
