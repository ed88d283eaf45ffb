"""
Download of the snowshoe hare trapping table.

The table is published by the Bonanza Creek LTER on the EDI data portal
(package knb-lter-bnz.55, Kielland, Chapin & Ruess). The portal URL of the
CSV entity changes between package revisions, so it is passed in by the
caller (``--fetch-url`` or ``data.source_url`` in the YAML config).
"""

from __future__ import annotations

from pathlib import Path

import requests


def fetch_dataset(url: str,
                  destination: Path,
                  overwrite: bool = False,
                  timeout: float = 60.0,
                  verbose: bool = True) -> Path:
    """
    Download ``url`` to ``destination``.

    Parameters:
        url: Direct link to the CSV file
        destination: Local file path; parent directories are created
        overwrite: Re-download even if the file exists
        timeout: Request timeout in seconds
        verbose: Print progress

    Returns:
        Path of the local copy

    Raises:
        requests.HTTPError: on a non-2xx response
        ValueError: if the response body is empty
    """
    destination = Path(destination)
    if destination.exists() and not overwrite:
        if verbose:
            print(f"Hare data already present at {destination}")
        return destination

    if verbose:
        print(f"Downloading hare data from {url} ...")
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    if not response.content:
        raise ValueError(f"Empty response from {url}")

    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_bytes(response.content)
    if verbose:
        print(f"  Saved {len(response.content)} bytes to {destination}")
    return destination
