"""
REST client for the managed database behind the dashboard.

The database is a Supabase project; tables are read through its PostgREST
endpoint (``/rest/v1/<table>``) with horizontal filters encoded as query
parameters, e.g. ``date=gte.2024-01-01``.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..utils.config import Config
from ..utils.exceptions import ConfigurationError, DataSourceError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# (column, operator, value), e.g. ("date", "gte", date(2024, 1, 1))
Filter = Tuple[str, str, Any]
# (column, ascending)
Order = Tuple[str, bool]

OPERATORS = {'eq', 'neq', 'gt', 'gte', 'lt', 'lte', 'is', 'in'}


class SupabaseClient:
    """
    Thin read-only client over the Supabase REST interface.
    Transport retries live in the session; every failure that survives them
    is raised as ``DataSourceError``.
    """
    
    def __init__(self,
                 url: Optional[str] = None,
                 api_key: Optional[str] = None,
                 timeout: Optional[float] = None,
                 retries: Optional[int] = None,
                 session: Optional[requests.Session] = None):
        """
        Initialize the client.
        
        Args:
            url: Project URL (defaults to ``SUPABASE_URL``)
            api_key: Project API key (defaults to ``SUPABASE_KEY``)
            timeout: Request timeout in seconds
            retries: Transport level retry count
            session: Pre-built session, mainly for tests
        """
        self.base_url = (url or Config.SUPABASE_URL or '').rstrip('/')
        self.api_key = api_key or Config.SUPABASE_KEY
        
        if not self.base_url:
            raise ConfigurationError("Supabase URL not provided")
        if not self.api_key:
            raise ConfigurationError("Supabase API key not provided")
        
        self.timeout = timeout if timeout is not None else Config.REQUEST_TIMEOUT
        self.retries = retries if retries is not None else Config.REQUEST_RETRIES
        self.session = session or self._create_session()
        
        logger.info(f"Initialized SupabaseClient for {self.base_url}")
    
    def _create_session(self) -> requests.Session:
        """Create requests session with retry strategy."""
        session = requests.Session()
        
        retry_strategy = Retry(
            total=self.retries,
            backoff_factor=0.5,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "HEAD"],
            raise_on_status=False,
        )
        
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        
        session.headers.update({
            'apikey': self.api_key,
            'Authorization': f'Bearer {self.api_key}',
            'Accept': 'application/json',
        })
        
        return session
    
    def table_url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"
    
    @staticmethod
    def format_value(value: Any) -> str:
        """Render a filter value the way PostgREST expects it."""
        if value is None:
            return 'null'
        if isinstance(value, bool):
            return 'true' if value else 'false'
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        if isinstance(value, (list, tuple, set)):
            return '(' + ','.join(SupabaseClient.format_value(v) for v in value) + ')'
        return str(value)
    
    def build_params(self,
                     columns: Optional[str] = None,
                     filters: Optional[Sequence[Filter]] = None,
                     order: Optional[Sequence[Order]] = None,
                     limit: Optional[int] = None) -> List[Tuple[str, str]]:
        """Build the query string as a list of pairs; a column may be filtered twice."""
        params: List[Tuple[str, str]] = []
        
        if columns:
            params.append(('select', ''.join(columns.split())))
        
        for column, operator, value in filters or []:
            if operator not in OPERATORS:
                raise ValueError(f"Unsupported filter operator: {operator}")
            params.append((column, f"{operator}.{self.format_value(value)}"))
        
        if order:
            params.append(('order', ','.join(
                f"{column}.{'asc' if ascending else 'desc'}" for column, ascending in order
            )))
        
        if limit is not None:
            params.append(('limit', str(limit)))
        
        return params
    
    def select(self,
               table: str,
               columns: str = '*',
               filters: Optional[Sequence[Filter]] = None,
               order: Optional[Sequence[Order]] = None,
               limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Fetch rows from a table.
        
        Args:
            table: Table name
            columns: PostgREST select list, embedded resources included
            filters: Horizontal filters
            order: Sort columns
            limit: Maximum number of rows
            
        Returns:
            List of row dictionaries; empty when nothing matches
            
        Raises:
            DataSourceError: If the request or the server fails
        """
        params = self.build_params(columns, filters, order, limit)
        logger.debug(f"Querying {table} with {params}")
        
        response = self._send('get', table, params=params)
        
        try:
            rows = response.json()
        except ValueError as e:
            raise DataSourceError(f"Invalid JSON returned for {table}: {e}", table=table,
                                  status_code=response.status_code) from e
        
        if not isinstance(rows, list):
            raise DataSourceError(f"Unexpected payload returned for {table}", table=table,
                                  status_code=response.status_code)
        
        return rows
    
    def count(self, table: str, filters: Optional[Sequence[Filter]] = None) -> int:
        """Exact row count of a table, read from the ``Content-Range`` header."""
        params = self.build_params(None, filters)
        response = self._send('head', table, params=params, headers={'Prefer': 'count=exact'})
        
        content_range = response.headers.get('Content-Range', '')
        total = content_range.rpartition('/')[2]
        if not total.isdigit():
            raise DataSourceError(f"Missing row count for {table} (Content-Range: {content_range!r})",
                                  table=table, status_code=response.status_code)
        return int(total)
    
    def test_connection(self) -> bool:
        """Check that the REST endpoint answers."""
        try:
            response = self.session.get(f"{self.base_url}/rest/v1/", timeout=10)
            return response.status_code == 200
        except requests.exceptions.RequestException:
            return False
    
    def _send(self, method: str, table: str, params: List[Tuple[str, str]],
              headers: Optional[Dict[str, str]] = None) -> requests.Response:
        try:
            response = getattr(self.session, method)(
                self.table_url(table), params=params, headers=headers, timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Request to {table} failed: {e}")
            raise DataSourceError(f"Request to {table} failed: {e}", table=table) from e
        
        if response.status_code >= 400:
            message = self._error_message(response)
            logger.error(f"Query on {table} returned status {response.status_code}: {message}")
            raise DataSourceError(f"Query on {table} failed ({response.status_code}): {message}",
                                  table=table, status_code=response.status_code)
        
        return response
    
    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or 'no response body'
        if isinstance(body, dict):
            return body.get('message') or body.get('error') or str(body)
        return str(body)
