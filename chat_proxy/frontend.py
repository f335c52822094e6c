"""Serving of a pre-built single-page frontend, when one is present."""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException
from starlette.responses import Response
from starlette.types import Scope

logger = logging.getLogger(__name__)

# Vite output first, then Create React App
BUILD_DIR_NAMES = ("dist", "build")
INDEX_DOCUMENT = "index.html"


class SPAStaticFiles(StaticFiles):
    """StaticFiles that answers unknown paths with the index document."""

    async def get_response(self, path: str, scope: Scope) -> Response:
        try:
            return await super().get_response(path, scope)
        except HTTPException as exc:
            if exc.status_code != 404:
                raise
            return await super().get_response(INDEX_DOCUMENT, scope)


def find_build_dir(frontend_dir: Path) -> Path | None:
    for name in BUILD_DIR_NAMES:
        candidate = frontend_dir / name
        if candidate.is_dir():
            return candidate
    return None


def mount_frontend(app: FastAPI, frontend_dir: Path) -> Path | None:
    """Mount the first build directory found at ``/``; no-op when there is none.

    Must run after the API routes are registered so they take precedence.
    """
    build_dir = find_build_dir(frontend_dir)
    if build_dir is None:
        logger.info("No frontend build under %s; static route not registered", frontend_dir)
        return None
    app.mount("/", SPAStaticFiles(directory=str(build_dir), html=True), name="frontend")
    logger.info("Serving frontend from %s", build_dir)
    return build_dir
