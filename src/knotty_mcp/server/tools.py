"""MCP tool definitions."""

from typing import List

from mcp import types

HTTP_METHOD_FILTER = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]
HTTP_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

NO_ARGUMENTS = {"type": "object", "properties": {}, "required": []}


def build_tools() -> List[types.Tool]:
    """Tools advertised by the server, in listing order."""
    return [
        types.Tool(
            name="getApiSchema",
            description=(
                "Search for API endpoint definitions in the OpenAPI/Swagger "
                "specification. Returns matching endpoints with their paths, "
                "methods, parameters, request bodies, and response schemas."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "description": (
                            "Search query matched against path, operationId, "
                            "summary, description and tags. Examples: \"users\", "
                            "\"createUser\", \"authentication\""
                        ),
                    },
                    "maxResults": {
                        "type": "number",
                        "description": "Maximum number of endpoints to return (default: 10, max: 50)",
                        "default": 10,
                    },
                    "method": {
                        "type": "string",
                        "description": "Filter by HTTP method",
                        "enum": HTTP_METHOD_FILTER,
                    },
                    "tag": {
                        "type": "string",
                        "description": "Filter by API tag/category",
                    },
                    "includeRequestBody": {
                        "type": "boolean",
                        "description": "Include request body schema in results (default: true)",
                        "default": True,
                    },
                    "includeResponses": {
                        "type": "boolean",
                        "description": "Include response schemas in results (default: true)",
                        "default": True,
                    },
                },
                "required": ["query"],
            },
        ),
        types.Tool(
            name="getApiInfo",
            description=(
                "Get general information about the API: title, version, "
                "description, base URL, tags and security schemes."
            ),
            inputSchema=NO_ARGUMENTS,
        ),
        types.Tool(
            name="listEndpoints",
            description=(
                "List all API endpoints in brief form (method, path, "
                "operationId, summary), optionally filtered by method or tag."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "method": {
                        "type": "string",
                        "description": "Filter by HTTP method",
                        "enum": HTTP_METHOD_FILTER,
                    },
                    "tag": {
                        "type": "string",
                        "description": "Filter by API tag/category",
                    },
                },
                "required": [],
            },
        ),
        types.Tool(
            name="refreshCache",
            description="Force a refresh of the cached OpenAPI specification.",
            inputSchema=NO_ARGUMENTS,
        ),
        types.Tool(
            name="getCacheStatus",
            description=(
                "Get the cache status: when the spec was fetched and when it expires."
            ),
            inputSchema=NO_ARGUMENTS,
        ),
        types.Tool(
            name="analyzeApiFromUrl",
            description=(
                "Analyze any OpenAPI/Swagger specification from a URL. Accepts "
                "direct JSON/YAML spec URLs and Swagger UI pages, which are "
                "scraped to find the spec. Supports Bearer token authentication."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "url": {
                        "type": "string",
                        "description": (
                            "URL of the spec or of a Swagger UI page, e.g. "
                            "\"https://petstore.swagger.io/v2/swagger.json\" or "
                            "\"https://example.com/swagger-ui.html\""
                        ),
                    },
                    "authToken": {
                        "type": "string",
                        "description": (
                            "Bearer token, required when the spec endpoint "
                            "returns 401/403. Sent as \"Authorization: Bearer <token>\""
                        ),
                    },
                    "query": {
                        "type": "string",
                        "description": "Optional search query for specific endpoints",
                    },
                    "maxResults": {
                        "type": "number",
                        "description": "Maximum number of matching endpoints (default: 10, max: 50)",
                        "default": 10,
                    },
                },
                "required": ["url"],
            },
        ),
        types.Tool(
            name="executeApiRequest",
            description=(
                "Execute an HTTP API request and return the response. Only use "
                "this when the user explicitly wants to make an API call."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "url": {"type": "string", "description": "Full URL for the API request"},
                    "method": {
                        "type": "string",
                        "description": "HTTP method to use",
                        "enum": HTTP_METHODS,
                        "default": "GET",
                    },
                    "body": {
                        "type": "object",
                        "additionalProperties": True,
                        "description": "Request body, sent as JSON",
                    },
                    "headers": {
                        "type": "object",
                        "additionalProperties": True,
                        "description": "Custom request headers",
                    },
                    "authToken": {
                        "type": "string",
                        "description": "Bearer token for the Authorization header",
                    },
                    "timeout": {
                        "type": "number",
                        "description": "Request timeout in milliseconds (default: 30000, max: 60000)",
                        "default": 30000,
                    },
                    "followRedirects": {
                        "type": "boolean",
                        "description": "Whether to follow HTTP redirects (default: true)",
                        "default": True,
                    },
                },
                "required": ["url"],
            },
        ),
        types.Tool(
            name="req",
            description="Shorthand for executeApiRequest.",
            inputSchema={
                "type": "object",
                "properties": {
                    "url": {"type": "string", "description": "Full URL for the API request"},
                    "method": {
                        "type": "string",
                        "description": "HTTP method",
                        "enum": HTTP_METHODS,
                        "default": "GET",
                    },
                    "body": {
                        "type": "object",
                        "additionalProperties": True,
                        "description": "Request body (JSON)",
                    },
                    "headers": {
                        "type": "object",
                        "additionalProperties": True,
                        "description": "Custom headers",
                    },
                    "authToken": {
                        "type": "string",
                        "description": "Bearer token for the Authorization header",
                    },
                },
                "required": ["url"],
            },
        ),
    ]


TOOL_NAMES = [tool.name for tool in build_tools()]
