"""
Common behaviour of the worked examples.
"""

import time
import logging
from typing import Any, Dict, Optional

from pcalab.components.config import Config, ConfigManager
from pcalab.utils.general import to_serializable

logger = logging.getLogger(__name__)


class Example:
    """
    Base class for a worked example.

    Subclasses implement _run, returning a dictionary of results.
    """

    name = 'example'

    def __init__(self, config: Optional[Config] = None):
        """
        Initialize the example.

        Args:
            config: Configuration (defaults to the shared configuration)
        """
        self.config = config or ConfigManager.get_config()
        self.result: Optional[Dict[str, Any]] = None

    def _run(self) -> Dict[str, Any]:
        raise NotImplementedError

    def run(self) -> Dict[str, Any]:
        """
        Run the example.

        Returns:
            JSON-serializable dictionary of results
        """
        start_time = time.time()
        logger.info(f"Running {self.name} example")

        result = to_serializable(self._run())
        result['example'] = self.name
        result['elapsed_seconds'] = round(time.time() - start_time, 3)

        logger.info(f"Finished {self.name} example in {result['elapsed_seconds']:.2f}s")
        self.result = result
        return result
