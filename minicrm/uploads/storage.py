from pathlib import Path


class PublicStorage:
    """Local directory served to clients under ``<base_url>/storage``.

    Paths handed in and out are relative to the storage root
    (e.g. ``logos/company_logo_1700000000_ab12cd34.png``).
    """

    def __init__(self, root: str | Path, base_url: str):
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/")

    def path(self, relative: str) -> Path:
        full = (self.root / relative).resolve()
        if self.root != full and self.root not in full.parents:
            raise ValueError(f"Path escapes storage root: {relative}")
        return full

    def exists(self, relative: str) -> bool:
        return self.path(relative).is_file()

    def put(self, relative: str, data: bytes) -> str:
        full = self.path(relative)
        full.parent.mkdir(parents=True, exist_ok=True)
        full.write_bytes(data)
        return relative

    def delete(self, relative: str) -> bool:
        full = self.path(relative)
        if not full.is_file():
            return False
        full.unlink()
        return True

    def size(self, relative: str) -> int:
        return self.path(relative).stat().st_size

    def url(self, relative: str) -> str:
        return public_url(self.base_url, relative)


def public_url(base_url: str, relative: str) -> str:
    return f"{base_url.rstrip('/')}/storage/{relative.lstrip('/')}"
