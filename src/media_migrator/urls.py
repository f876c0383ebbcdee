def is_absolute_url(path: str) -> bool:
    return path.startswith("http://") or path.startswith("https://")


def object_url(path: str, endpoint: str, bucket: str) -> str:
    """
    Public location of an object in the bucket.

    Absolute http(s) URLs are returned untouched. Anything else is treated as
    a bucket-relative path: backslashes become forward slashes and a single
    leading slash is dropped before it is joined to ``https://{endpoint}/{bucket}/``.
    """
    if is_absolute_url(path):
        return path

    path = path.replace("\\", "/")
    if path.startswith("/"):
        path = path[1:]
    return f"https://{endpoint}/{bucket}/{path}"
