"""Practice lifecycle transitions."""
