"""
Example manager for running and caching the worked examples.
"""

import logging
import threading
from typing import Any, Dict, List, Optional, Type

from pcalab.components.config import Config, ConfigManager
from pcalab.walkthrough.base import Example
from pcalab.walkthrough.twin_heights import TwinHeightsExample
from pcalab.walkthrough.iris import IrisExample
from pcalab.walkthrough.mnist import MnistExample

logger = logging.getLogger(__name__)


EXAMPLES: Dict[str, Type[Example]] = {
    TwinHeightsExample.name: TwinHeightsExample,
    IrisExample.name: IrisExample,
    MnistExample.name: MnistExample
}


class ExampleManager:
    """
    Runs examples by name and keeps their latest results.
    """

    def __init__(self, config: Optional[Config] = None):
        """
        Initialize an example manager.

        Args:
            config: Configuration passed to every example
        """
        self.config = config or ConfigManager.get_config()
        self.results: Dict[str, Dict[str, Any]] = {}
        self.lock = threading.RLock()

    @staticmethod
    def list_examples() -> List[str]:
        """Names of the available examples."""
        return list(EXAMPLES.keys())

    def get_example(self, name: str) -> Example:
        """
        Instantiate an example by name.

        Args:
            name: Example name

        Returns:
            Example instance
        """
        if name not in EXAMPLES:
            raise KeyError(f"Unknown example '{name}'; choose from {self.list_examples()}")
        return EXAMPLES[name](self.config)

    def run(self, name: str, force: bool = False) -> Dict[str, Any]:
        """
        Run an example, reusing the cached result unless forced.

        Args:
            name: Example name
            force: Recompute even if a result is cached

        Returns:
            Example result
        """
        with self.lock:
            if not force and name in self.results:
                logger.debug(f"Using cached result for {name}")
                return self.results[name]

            result = self.get_example(name).run()
            self.results[name] = result
            return result

    def get_result(self, name: str) -> Optional[Dict[str, Any]]:
        """Latest cached result for an example, or None."""
        with self.lock:
            return self.results.get(name)

    def clear(self) -> None:
        """Drop all cached results."""
        with self.lock:
            self.results = {}
