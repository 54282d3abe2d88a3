"""Actions usage analyzer application package."""
