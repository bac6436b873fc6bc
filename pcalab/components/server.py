"""
Server component for pcalab.

This module provides a FastAPI server exposing the PCA primitives and
the worked examples.
"""

import logging
import threading
from typing import Any, List, Literal, Optional, Union

import numpy as np

import fastapi
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from pcalab import __version__
from pcalab.components.config import Config, ConfigManager
from pcalab.math.distance import distance_matrix
from pcalab.math.knn import KNN3
from pcalab.math.pca import prcomp, pca_summary, wrapped_pca
from pcalab.utils.general import to_serializable
from pcalab.walkthrough.manager import ExampleManager

# Set up logging
logger = logging.getLogger(__name__)


# Define API models
class PCARequest(BaseModel):
    """PCA request model."""

    data: List[List[float]]
    center: bool = True
    scale: bool = False
    rank: Optional[int] = None
    method: Literal['svd', 'power'] = 'svd'
    iters: int = 1000


class DistanceRequest(BaseModel):
    """Distance matrix request model."""

    data: List[List[float]]


class KNNRequest(BaseModel):
    """kNN classification request model."""

    train: List[List[float]]
    labels: List[Union[int, str]]
    test: List[List[float]]
    k: int = 5


class Server:
    """
    FastAPI server for pcalab.
    """

    def __init__(self,
                 example_manager: Optional[ExampleManager] = None,
                 config: Optional[Config] = None):
        """
        Initialize a server.

        Args:
            example_manager: Manager used to run examples
            config: Configuration for the server
        """
        self.config = config or ConfigManager.get_config()
        self.example_manager = example_manager or ExampleManager(self.config)

        self.app = FastAPI(
            title="pcalab API",
            description="Principal component analysis primitives and worked examples",
            version=__version__
        )

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        self._setup_routes()
        self._setup_validation()
        self._setup_error_handling()

        self._running = False
        self._server_thread = None

    def _setup_routes(self) -> None:
        """
        Set up API routes.
        """
        @self.app.get("/health")
        async def health_check():
            return {"status": "ok"}

        @self.app.get("/api/v1/examples")
        async def list_examples():
            return {"examples": self.example_manager.list_examples()}

        @self.app.post("/api/v1/examples/{name}")
        def run_example(name: str, force: bool = False):
            if name not in self.example_manager.list_examples():
                raise HTTPException(status_code=404, detail=f"Example '{name}' not found")
            return self.example_manager.run(name, force=force)

        @self.app.post("/api/v1/pca")
        def compute_pca(request: PCARequest):
            if request.method == 'power':
                return self._power_pca(request)

            result = prcomp(request.data, center=request.center,
                            scale=request.scale, rank=request.rank)
            return to_serializable({
                'sdev': result['sdev'],
                'rotation': result['rotation'],
                'center': result['center'],
                'scale': result['scale'],
                'x': result['x'],
                'importance': pca_summary(result)
            })

        @self.app.post("/api/v1/distance")
        def compute_distance(request: DistanceRequest):
            return {"distances": distance_matrix(request.data, square=True).tolist()}

        @self.app.post("/api/v1/knn")
        def classify(request: KNNRequest):
            knn = KNN3(k=request.k).fit(request.train, request.labels)
            proba = knn.predict_proba(request.test)
            return to_serializable({
                'predictions': knn.predict(request.test),
                'classes': list(knn.classes_),
                'probabilities': proba.values
            })

    def _power_pca(self, request: PCARequest) -> dict:
        """
        Principal components by power iteration with deflation.

        Only the directions and scores are estimated; no standard deviations.
        """
        data = np.asarray(request.data, dtype=float)
        if data.ndim != 2 or data.shape[0] < 2:
            raise ValueError("PCA needs a matrix with at least 2 observations")
        if request.scale or not request.center:
            raise ValueError("Power iteration always centers and never scales; use method 'svd'")

        n_comps = request.rank or min(data.shape)
        if n_comps < 1:
            raise ValueError(f"rank must be positive, got {n_comps}")

        result = wrapped_pca(data, n_comps, iters=request.iters,
                             seed=self.config.get('seed', 1988))
        comps = result['comps']
        return to_serializable({
            'rotation': comps.T,
            'center': result['center'],
            'x': (data - result['center']) @ comps.T
        })

    def _setup_validation(self) -> None:
        """
        Set up request validation.
        """
        @self.app.exception_handler(fastapi.exceptions.RequestValidationError)
        async def validation_exception_handler(request, exc):
            return JSONResponse(
                status_code=422,
                content={"detail": str(exc)}
            )

    def _setup_error_handling(self) -> None:
        """
        Set up error handling.
        """
        @self.app.exception_handler(ValueError)
        async def value_error_handler(request, exc):
            return JSONResponse(
                status_code=400,
                content={"detail": str(exc)}
            )

        @self.app.exception_handler(Exception)
        async def generic_exception_handler(request, exc):
            logger.exception("Unhandled exception")
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error"}
            )

    def run(self) -> None:
        """
        Run the server in the foreground until interrupted.
        """
        import uvicorn

        port = self.config.get('server.port', 8080)
        host = self.config.get('server.host', 'localhost')
        logger.info(f"Serving at http://{host}:{port}")

        uvicorn.run(
            self.app,
            host=host,
            port=port,
            log_level=self._uvicorn_log_level()
        )

    def start(self) -> None:
        """
        Start the server in a background thread.
        """
        if self._running:
            return

        self._server_thread = threading.Thread(target=self.run, daemon=True)
        self._server_thread.start()
        self._running = True

    def stop(self) -> None:
        """
        Stop the server.
        """
        if not self._running:
            return

        # uvicorn.run has no stop hook; the daemon thread ends with the process
        self._running = False

        logger.info("Server stopping (full shutdown requires process restart)")

    def _uvicorn_log_level(self) -> str:
        level = str(self.config.get('logging.level', 'info')).lower()
        return 'warning' if level == 'warn' else level


class ServerManager:
    """
    Singleton manager for the server.
    """

    _instance = None
    _lock = threading.RLock()

    @classmethod
    def get_server(cls,
                   example_manager: Optional[ExampleManager] = None,
                   config: Optional[Config] = None) -> Server:
        """
        Get the server instance.

        Args:
            example_manager: Example manager
            config: Configuration

        Returns:
            Server instance
        """
        with cls._lock:
            if cls._instance is None:
                cls._instance = Server(example_manager, config)

            return cls._instance

    @classmethod
    def shutdown(cls) -> None:
        """
        Shut down the server.
        """
        with cls._lock:
            if cls._instance is not None:
                cls._instance.stop()
                cls._instance = None
