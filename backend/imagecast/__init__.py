"""imagecast: upload images, select one, stream it back."""
