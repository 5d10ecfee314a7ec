from __future__ import annotations

from datetime import UTC, datetime
from functools import lru_cache
from hashlib import sha256
from pathlib import Path

from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

PACKAGE_ROOT = Path(__file__).parent
STATIC_ROOT = PACKAGE_ROOT / "static"
TEMPLATES_ROOT = PACKAGE_ROOT / "templates"


@lru_cache(maxsize=64)
def asset_url(relative_path: str) -> str:
    """Static URL with a content hash so browsers drop stale copies."""
    file_path = STATIC_ROOT / relative_path
    if file_path.exists():
        digest = sha256(file_path.read_bytes()).hexdigest()[:12]
        return f"/static/{relative_path}?v={digest}"
    return f"/static/{relative_path}"


# Shared Jinja2 templates instance
templates = Jinja2Templates(directory=str(TEMPLATES_ROOT))
templates.env.globals["current_year"] = datetime.now(UTC).year
templates.env.globals["asset_url"] = asset_url


class CachedStaticFiles(StaticFiles):
    def __init__(self, *args, cache_control: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.cache_control = cache_control or "public, max-age=86400"

    async def get_response(self, path: str, scope):
        response = await super().get_response(path, scope)
        if self.cache_control and response.status_code == 200:
            response.headers.setdefault("Cache-Control", self.cache_control)
        return response
