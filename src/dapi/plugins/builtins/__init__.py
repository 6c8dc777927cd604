"""Built-in plugins shipped with dapi."""
