"""CLI entrypoint for the transformation tracker."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

import requests
import typer

from transformation_tracker.core.config import get_settings

app = typer.Typer(name="xfrm", help="Transformation tracker command-line interface")
metadata_app = typer.Typer(name="metadata", help="Work with the metadata of a transformation")
app.add_typer(metadata_app, name="metadata")


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip('/')
    env_host = os.environ.get("XFRM_HOST")
    if env_host:
        return env_host.rstrip('/')
    return get_settings().api_host


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    resp = requests.request(method, url, timeout=60, **kwargs)
    if not resp.ok:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


def _echo_json(resp: requests.Response) -> None:
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def create(
    current: str = typer.Option(..., "--current", help="Location of the resource being transformed"),
    final: str = typer.Option(..., "--final", help="Location of the transformed resource"),
    metacard: str = typer.Option(..., "--metacard", help="Location of the source-of-truth resource"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Start tracking a new transformation."""
    payload = {
        "current_location": current,
        "final_location": final,
        "metacard_location": metacard,
    }
    _echo_json(_request("POST", "/transformations", host=host, json=payload))


@app.command()
def get(
    transform_id: str = typer.Argument(..., help="Transformation identifier"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Show the status of a transformation."""
    _echo_json(_request("GET", f"/transformations/{transform_id}", host=host))


@app.command()
def record(
    transform_id: str = typer.Argument(..., help="Transformation identifier"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Print the persisted record of a transformation."""
    _echo_json(_request("GET", f"/transformations/{transform_id}/record", host=host))


@app.command()
def delete(
    transform_id: str = typer.Argument(..., help="Transformation identifier"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Delete a transformation and all of its metadata."""
    _request("DELETE", f"/transformations/{transform_id}", host=host)
    typer.echo(json.dumps({"status": "ok"}))


@metadata_app.command("add")
def add_metadata(
    transform_id: str = typer.Argument(..., help="Transformation identifier"),
    metadata_type: str = typer.Argument(..., help="Metadata type, e.g. summary"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Add a metadata task to a transformation."""
    _echo_json(_request("POST", f"/transformations/{transform_id}/metadata/{metadata_type}", host=host))


@metadata_app.command("get")
def get_metadata(
    transform_id: str = typer.Argument(..., help="Transformation identifier"),
    metadata_type: str = typer.Argument(..., help="Metadata type"),
    content: bool = typer.Option(False, "--content", help="Print the content instead of the status"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Show the status or content of a metadata task."""
    path = f"/transformations/{transform_id}/metadata/{metadata_type}"
    if content:
        resp = _request("GET", f"{path}/content", host=host)
        typer.echo(resp.content, nl=False)
        return
    _echo_json(_request("GET", path, host=host))


@metadata_app.command("succeed")
def succeed_metadata(
    transform_id: str = typer.Argument(..., help="Transformation identifier"),
    metadata_type: str = typer.Argument(..., help="Metadata type"),
    path: Path = typer.Argument(..., help="File holding the generated content"),
    content_type: str = typer.Option("application/octet-stream", "--content-type", help="MIME type of the content"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Complete a metadata task with the content of a file."""
    data = path.expanduser().read_bytes()
    resp = _request(
        "PUT",
        f"/transformations/{transform_id}/metadata/{metadata_type}/content",
        host=host,
        data=data,
        headers={"Content-Type": content_type},
    )
    _echo_json(resp)


@metadata_app.command("fail")
def fail_metadata(
    transform_id: str = typer.Argument(..., help="Transformation identifier"),
    metadata_type: str = typer.Argument(..., help="Metadata type"),
    message: Optional[str] = typer.Option(None, "--message", help="Why the task failed"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Mark a metadata task as failed."""
    payload = {"reason": "TRANSFORMATION_FAILURE", "message": message}
    _echo_json(
        _request("PUT", f"/transformations/{transform_id}/metadata/{metadata_type}/failure", host=host, json=payload)
    )


if __name__ == "__main__":
    app()
