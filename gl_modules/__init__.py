"""Business modules built on the GL kernel."""
