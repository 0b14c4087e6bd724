"""Web front-end for voxlate."""
