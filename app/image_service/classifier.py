IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "bmp", "webp", "avif"})

def is_image(key: str) -> bool:
    """Checks whether an object key names an image, by the extension of its last path component."""
    name = key.rsplit("/", 1)[-1]
    _, dot, ext = name.rpartition(".")
    return bool(dot) and ext.lower() in IMAGE_EXTENSIONS
