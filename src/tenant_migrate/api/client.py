"""Checkout platform API client implementation."""

import asyncio
import json
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import aiohttp
import requests
from loguru import logger
from pydantic import BaseModel

from ..config.config import PlatformConfig
from .exceptions import CheckoutAPIError, error_for_status
from .rate_limiter import RateLimiter

USER_AGENT = 'tenant-migrate/0.1.0'


class APIResponse(BaseModel):
    """Standard API response wrapper."""

    status_code: int
    data: Any
    headers: Dict[str, str]
    success: bool


def _raise_for_status(
    status: int,
    headers: Dict[str, str],
    error_data: Any,
    text: str = '',
    tenant_id: Optional[str] = None,
) -> None:
    """Translate an HTTP error status into the matching API exception."""
    if status < 400:
        return

    if status == 429:
        message = (
            f'Rate limit exceeded. Retry after {headers.get("Retry-After", 60)} seconds'
        )
    elif status == 401:
        message = 'Authentication failed'
    elif status == 403:
        message = 'Permission denied'
    elif status == 404:
        message = 'Resource not found'
    elif isinstance(error_data, dict):
        message = f'API request failed: {error_data.get("message", "no message")}'
    else:
        message = f'API request failed: {text}' if text else 'API request failed'

    raise error_for_status(
        status,
        message,
        tenant_id=tenant_id,
        response_data=error_data if isinstance(error_data, dict) else None,
    )


def unwrap_items(data: Any) -> List[Dict[str, Any]]:
    """Return the list of records from a bare list or a ``{"data": [...]}`` envelope."""
    if data is None:
        return []
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ('data', 'items', 'results'):
            if isinstance(data.get(key), list):
                return data[key]
    raise CheckoutAPIError(f'Unexpected list response: {type(data).__name__}')


class CheckoutClient:
    """Checkout platform API client with authentication."""

    def __init__(self, config: PlatformConfig):
        """Initialize checkout client.

        Args:
            config: Platform configuration
        """
        self.config = config
        self.base_url = config.url.rstrip('/')
        self.rate_limiter = RateLimiter(config.rate_limit_per_second)
        self.session = requests.Session()
        self.session.headers.update(self._default_headers())

        logger.info(f'Initialized checkout client for {config.url}')

    def _default_headers(self) -> Dict[str, str]:
        if not self.config.api_key:
            raise CheckoutAuthenticationError('No API key provided')

        headers = {
            'Authorization': f'Bearer {self.config.api_key}',
            'Content-Type': 'application/json',
            'Accept': 'application/json',
            'User-Agent': USER_AGENT,
        }
        if self.config.organization_id:
            headers['X-Organization-Id'] = self.config.organization_id
        return headers

    def _build_url(self, endpoint: str) -> str:
        """Build full API URL from endpoint.

        Args:
            endpoint: API endpoint path

        Returns:
            Full API URL
        """
        return urljoin(self.base_url + '/', endpoint.lstrip('/'))

    @staticmethod
    def _tenant_headers(tenant_id: Optional[str]) -> Dict[str, str]:
        return {'X-Tenant-Id': tenant_id} if tenant_id else {}

    def _handle_response(
        self, response: requests.Response, tenant_id: Optional[str] = None
    ) -> APIResponse:
        """Handle API response and convert to standard format.

        Args:
            response: Raw HTTP response
            tenant_id: Tenant the request was scoped to

        Returns:
            Standardized API response

        Raises:
            CheckoutAPIError: For various API errors
        """
        headers = dict(response.headers)

        if response.status_code >= 400:
            try:
                error_data = response.json()
            except ValueError:
                error_data = None
            _raise_for_status(
                response.status_code,
                headers,
                error_data,
                getattr(response, 'text', ''),
                tenant_id=tenant_id,
            )

        # Parse response data
        try:
            data = response.json() if response.content else None
        except ValueError:
            data = response.text

        return APIResponse(
            status_code=response.status_code,
            data=data,
            headers=headers,
            success=200 <= response.status_code < 300,
        )

    async def _make_request_async(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        tenant_id: Optional[str] = None,
    ) -> APIResponse:
        """Make asynchronous API request.

        Args:
            method: HTTP method
            endpoint: API endpoint
            params: Query parameters
            data: Request body data
            tenant_id: Tenant the request is scoped to

        Returns:
            API response
        """
        url = self._build_url(endpoint)
        headers = self._default_headers()
        headers.update(self._tenant_headers(tenant_id))
        timeout = aiohttp.ClientTimeout(total=self.config.timeout)

        await self.rate_limiter.acquire()

        async with aiohttp.ClientSession(headers=headers, timeout=timeout) as session:
            try:
                async with session.request(
                    method=method, url=url, params=params, json=data
                ) as response:
                    response_headers = dict(response.headers)
                    response_text = await response.text()

                    try:
                        response_data = (
                            json.loads(response_text) if response_text else None
                        )
                    except ValueError:
                        response_data = response_text

                    _raise_for_status(
                        response.status,
                        response_headers,
                        response_data,
                        response_text,
                        tenant_id=tenant_id,
                    )

                    return APIResponse(
                        status_code=response.status,
                        data=response_data,
                        headers=response_headers,
                        success=200 <= response.status < 300,
                    )

            except aiohttp.ClientError as e:
                logger.error(f'Network error during {method} {endpoint}: {e}')
                raise CheckoutAPIError(f'Network error: {e}', tenant_id=tenant_id)
            except asyncio.TimeoutError as e:
                logger.error(f'Timeout during {method} {endpoint}')
                raise CheckoutAPIError(
                    f'Request timed out after {self.config.timeout}s', tenant_id=tenant_id
                ) from e

    def get(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        tenant_id: Optional[str] = None,
    ) -> APIResponse:
        """Make GET request.

        Args:
            endpoint: API endpoint
            params: Query parameters
            tenant_id: Tenant the request is scoped to

        Returns:
            API response
        """
        url = self._build_url(endpoint)
        self.rate_limiter.acquire_sync()

        try:
            response = self.session.get(
                url,
                params=params,
                headers=self._tenant_headers(tenant_id),
                timeout=self.config.timeout,
            )
            return self._handle_response(response, tenant_id)
        except requests.RequestException as e:
            logger.error(f'Network error during GET request: {e}')
            raise CheckoutAPIError(f'Network error: {e}', tenant_id=tenant_id)

    async def get_async(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        tenant_id: Optional[str] = None,
    ) -> APIResponse:
        """Make asynchronous GET request."""
        return await self._make_request_async(
            'GET', endpoint, params=params, tenant_id=tenant_id
        )

    async def post_async(
        self,
        endpoint: str,
        data: Optional[Dict[str, Any]] = None,
        tenant_id: Optional[str] = None,
    ) -> APIResponse:
        """Make asynchronous POST request."""
        return await self._make_request_async(
            'POST', endpoint, data=data, tenant_id=tenant_id
        )

    async def delete_async(
        self, endpoint: str, tenant_id: Optional[str] = None
    ) -> APIResponse:
        """Make asynchronous DELETE request."""
        return await self._make_request_async('DELETE', endpoint, tenant_id=tenant_id)

    async def get_paginated_async(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        tenant_id: Optional[str] = None,
        per_page: int = 100,
    ) -> List[Dict[str, Any]]:
        """Get all pages of a paginated endpoint.

        Args:
            endpoint: API endpoint
            params: Query parameters
            tenant_id: Tenant the request is scoped to
            per_page: Items per page

        Returns:
            List of all items from all pages
        """
        all_items = []
        page = 1
        params = dict(params or {})
        params['per_page'] = per_page

        while True:
            params['page'] = page
            response = await self.get_async(endpoint, params=params, tenant_id=tenant_id)

            items = unwrap_items(response.data)
            if not items:
                break

            all_items.extend(items)

            total_pages = response.headers.get('X-Total-Pages')
            if total_pages and page >= int(total_pages):
                break

            if len(items) < per_page:
                break

            page += 1

        logger.debug(f'Retrieved {len(all_items)} items from {endpoint}')
        return all_items

    def test_connection(self) -> bool:
        """Test connection to the checkout platform.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            response = self.get('/health')
            return response.success
        except CheckoutAPIError as e:
            logger.error(f'Connection test failed: {e}')
            return False

    def close(self):
        """Close the client session."""
        self.session.close()
        logger.debug('Checkout client session closed')

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


class CheckoutClientFactory:
    """Factory for creating checkout platform clients."""

    @staticmethod
    def create_client(config: PlatformConfig) -> CheckoutClient:
        """Create checkout client from configuration.

        Args:
            config: Platform configuration

        Returns:
            Configured checkout client

        Raises:
            CheckoutAuthenticationError: If no API key is configured
        """
        if not config.api_key:
            raise CheckoutAuthenticationError('api_key must be provided')

        return CheckoutClient(config)
