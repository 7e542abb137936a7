"""
Fan-out/fan-in helper for independent queries.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, Optional

from .config import Config

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def fetch_concurrently(tasks: Dict[str, Callable[[], Any]],
                       max_workers: Optional[int] = None) -> Dict[str, Any]:
    """
    Run independent zero-argument callables in parallel.
    
    Args:
        tasks: Mapping of result name to callable
        max_workers: Thread pool width (defaults to ``Config.MAX_WORKERS``)
        
    Returns:
        Mapping of result name to the callable's return value
        
    Raises:
        Whatever the first failing callable raised, once every task has settled
    """
    if not tasks:
        return {}
    
    results: Dict[str, Any] = {}
    first_error: Optional[BaseException] = None
    workers = min(max_workers or Config.MAX_WORKERS, len(tasks))
    
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(task): name for name, task in tasks.items()}
        for future in as_completed(futures):
            name = futures[future]
            try:
                results[name] = future.result()
            except Exception as e:
                logger.error(f"Concurrent task '{name}' failed: {e}")
                if first_error is None:
                    first_error = e
    
    if first_error is not None:
        raise first_error
    
    return results
