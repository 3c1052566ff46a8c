"""Entry model, translation, bundling and ambient infrastructure."""
