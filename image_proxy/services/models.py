from dataclasses import dataclass, field


@dataclass(frozen=True)
class SourceImage:
    """Fetched, not yet decoded source plus the headers the pipeline reads."""

    body: bytes
    content_type: str = ""
    cache_control: str = ""
    etag: str = ""
    last_modified: str = ""
    # Accept header of the client request that triggered the fetch
    accept: str | None = None

    def passthrough_headers(self) -> dict[str, str]:
        return {
            "Cache-Control": self.cache_control,
            "ETag": self.etag,
            "Last-Modified": self.last_modified,
        }


@dataclass
class ProxyResponse:
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)
    status: int = 200

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def content_type(self) -> str:
        return self.headers.get("Content-Type", "")
