"""Conditional download of the remote repo.json catalog."""

import logging
import re
from pathlib import Path
from typing import Callable, Mapping

import requests
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TimeElapsedColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

from .config import DEFAULT_REPO_URL

logger = logging.getLogger(__name__)

ETAG_RE = re.compile(r'^etag:\s*(?:W/)?"(.+)"', re.IGNORECASE | re.MULTILINE)


class FetchError(Exception):
    """Raised when the catalog download fails."""

    pass


def header_path_for(json_path: Path) -> Path:
    return json_path.with_name(json_path.name + ".header")


def part_path_for(json_path: Path) -> Path:
    return json_path.with_name(json_path.name + ".part")


def parse_etag(header_text: str) -> str | None:
    """Pull the ETag value out of a saved block of response headers."""
    match = ETAG_RE.search(header_text)
    return match.group(1) if match else None


def format_headers(headers: Mapping[str, str]) -> str:
    return "".join(f"{name}: {value}\n" for name, value in headers.items())


def create_download_progress() -> Progress:
    """Create a progress bar for the catalog download."""
    return Progress(
        TimeElapsedColumn(),
        BarColumn(bar_width=None),
        DownloadColumn(),
        TransferSpeedColumn(),
        TimeRemainingColumn(),
    )


class Fetcher:
    """Downloads repo.json only when the server reports a new ETag."""

    def __init__(self, url: str = DEFAULT_REPO_URL, session: requests.Session | None = None):
        self.url = url
        self.session = session or requests.Session()

    def download_header(self) -> str:
        """HEAD the catalog URL. Returns an empty string if that fails."""
        try:
            response = self.session.head(self.url, allow_redirects=True)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning("Failed to download header: %s", e)
            return ""
        return format_headers(response.headers)

    def download_body(
        self,
        part_path: Path,
        on_progress: Callable[[int, int], None] | None = None,
    ) -> None:
        """Stream the catalog into ``part_path``."""
        try:
            response = self.session.get(self.url, stream=True)
            response.raise_for_status()

            total_size = int(response.headers.get("content-length", 0))
            bytes_downloaded = 0
            with open(part_path, "wb") as f:
                for chunk in response.iter_content(chunk_size=8192):
                    if chunk:
                        f.write(chunk)
                        bytes_downloaded += len(chunk)
                        if on_progress:
                            on_progress(bytes_downloaded, total_size)

        except (requests.RequestException, OSError) as e:
            if part_path.exists():
                part_path.unlink()
            raise FetchError(f"Download failed: {e}") from e

    def fetch(
        self,
        json_path: Path,
        on_progress: Callable[[int, int], None] | None = None,
    ) -> bool:
        """
        Download the catalog to ``json_path`` unless it is already current.

        The ETag of the last download is kept in ``<json_path>.header``. The
        body is written to ``<json_path>.part`` and renamed into place once
        complete, so ``json_path`` never holds a partial file.

        Returns True if a new catalog was downloaded.
        """
        json_path = Path(json_path)
        header_path = header_path_for(json_path)
        part_path = part_path_for(json_path)

        try:
            prev_header = header_path.read_text()
        except OSError:
            prev_header = ""
        curr_header = self.download_header()

        prev_etag = parse_etag(prev_header)
        curr_etag = parse_etag(curr_header)
        if curr_etag is not None and prev_etag == curr_etag:
            logger.info("Catalog ETag unchanged (%s)", curr_etag)
            return False

        # Placeholders until the part file finishes downloading.
        for path in (header_path, json_path):
            if not path.exists():
                try:
                    path.touch()
                except OSError as e:
                    raise FetchError(f"Could not create file: {path}: {e}") from e

        self.download_body(part_path, on_progress=on_progress)

        try:
            header_path.write_text(curr_header)
        except OSError as e:
            logger.warning("Failed to write header file %s: %s", header_path, e)

        try:
            part_path.replace(json_path)
        except OSError as e:
            raise FetchError(f"Failed to move repo file to '{json_path}': {e}") from e

        logger.info("Downloaded catalog to %s", json_path)
        return True


def fetch(
    json_path: Path,
    url: str = DEFAULT_REPO_URL,
    session: requests.Session | None = None,
    show_progress: bool = True,
) -> bool:
    """Fetch the catalog with a rich progress bar. See Fetcher.fetch."""
    fetcher = Fetcher(url, session)
    if not show_progress:
        return fetcher.fetch(json_path)

    with create_download_progress() as progress:
        task_id = progress.add_task("download", total=None)

        def on_progress(bytes_downloaded: int, total_bytes: int) -> None:
            if total_bytes > 0:
                progress.update(task_id, total=total_bytes)
            progress.update(task_id, completed=bytes_downloaded)

        return fetcher.fetch(json_path, on_progress=on_progress)
