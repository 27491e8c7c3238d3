"""Pytest configuration and shared fixtures."""

from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Dict

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from knotty_mcp.fetcher.documents import detect_generation, spec_version_label
from knotty_mcp.fetcher.models import FetchResult

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


@pytest.fixture
def sample_openapi_spec() -> Dict[str, Any]:
    """Provide a minimal valid OpenAPI 3.0 specification for testing."""
    return {
        "openapi": "3.0.3",
        "info": {
            "title": "Test API",
            "version": "1.0.0",
            "description": "Test API for unit tests"
        },
        "servers": [
            {"url": "https://api.example.com/v1", "description": "Production"},
            {"url": "https://staging.example.com/v1"}
        ],
        "security": [{"bearerAuth": []}],
        "paths": {
            "/users": {
                "parameters": [
                    {
                        "name": "X-Request-Id",
                        "in": "header",
                        "schema": {"type": "string"}
                    }
                ],
                "get": {
                    "operationId": "listUsers",
                    "tags": ["users"],
                    "summary": "List users",
                    "description": "Retrieve a list of users",
                    "parameters": [
                        {
                            "name": "limit",
                            "in": "query",
                            "schema": {"type": "integer", "minimum": 1, "maximum": 100}
                        }
                    ],
                    "responses": {
                        "200": {
                            "description": "Success",
                            "content": {
                                "application/json": {
                                    "schema": {
                                        "type": "array",
                                        "items": {"$ref": "#/components/schemas/User"}
                                    }
                                }
                            }
                        }
                    }
                },
                "post": {
                    "operationId": "createUser",
                    "tags": ["users"],
                    "summary": "Create user",
                    "description": "Create a new user",
                    "requestBody": {
                        "required": True,
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/User"}
                            }
                        }
                    },
                    "responses": {
                        "201": {
                            "description": "User created",
                            "content": {
                                "application/json": {
                                    "schema": {"$ref": "#/components/schemas/User"}
                                }
                            }
                        }
                    }
                }
            },
            "/users/{id}": {
                "get": {
                    "operationId": "getUserById",
                    "tags": ["users"],
                    "summary": "Get user by ID",
                    "parameters": [
                        {
                            "name": "id",
                            "in": "path",
                            "required": True,
                            "schema": {"type": "integer"}
                        }
                    ],
                    "responses": {
                        "200": {
                            "description": "User found",
                            "content": {
                                "application/json": {
                                    "schema": {"$ref": "#/components/schemas/User"}
                                }
                            }
                        },
                        "404": {
                            "description": "User not found"
                        }
                    }
                },
                "delete": {
                    "operationId": "deleteUser",
                    "tags": ["users", "admin"],
                    "summary": "Delete user",
                    "security": [{"apiKeyAuth": []}],
                    "parameters": [
                        {
                            "name": "id",
                            "in": "path",
                            "required": True,
                            "schema": {"type": "integer"}
                        }
                    ],
                    "responses": {
                        "204": {"description": "User deleted"}
                    }
                }
            },
            "/health": {
                "get": {
                    "operationId": "healthCheck",
                    "tags": ["system"],
                    "summary": "Health check",
                    "security": [],
                    "responses": {
                        "200": {"description": "Service is healthy"}
                    }
                }
            }
        },
        "components": {
            "schemas": {
                "User": {
                    "type": "object",
                    "required": ["id", "name", "email"],
                    "properties": {
                        "id": {
                            "type": "integer",
                            "description": "User ID"
                        },
                        "name": {
                            "type": "string",
                            "description": "User full name"
                        },
                        "email": {
                            "type": "string",
                            "format": "email",
                            "description": "User email address"
                        },
                        "created_at": {
                            "type": "string",
                            "format": "date-time",
                            "description": "User creation timestamp"
                        }
                    }
                }
            },
            "securitySchemes": {
                "bearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"},
                "apiKeyAuth": {"type": "apiKey", "in": "header", "name": "X-API-Key"}
            }
        }
    }


@pytest.fixture
def sample_swagger_spec() -> Dict[str, Any]:
    """Provide a Swagger 2.0 specification for testing."""
    return {
        "swagger": "2.0",
        "info": {"title": "Pet Store", "version": "1.0.0"},
        "host": "petstore.example.com",
        "basePath": "/v2",
        "schemes": ["http", "https"],
        "consumes": ["application/json"],
        "produces": ["application/json"],
        "securityDefinitions": {
            "api_key": {"type": "apiKey", "in": "header", "name": "api_key"},
            "petstore_auth": {
                "type": "oauth2",
                "flow": "implicit",
                "authorizationUrl": "https://petstore.example.com/oauth/authorize",
                "scopes": {"write:pets": "modify pets", "read:pets": "read pets"}
            },
            "basicAuth": {"type": "basic"}
        },
        "paths": {
            "/pet": {
                "post": {
                    "operationId": "addPet",
                    "tags": ["pet"],
                    "summary": "Add a new pet to the store",
                    "consumes": ["application/json", "application/xml"],
                    "parameters": [
                        {
                            "in": "body",
                            "name": "body",
                            "description": "Pet object to add",
                            "required": True,
                            "schema": {"$ref": "#/definitions/Pet"}
                        }
                    ],
                    "responses": {"405": {"description": "Invalid input"}},
                    "security": [{"petstore_auth": ["write:pets", "read:pets"]}]
                }
            },
            "/pet/findByStatus": {
                "get": {
                    "operationId": "findPetsByStatus",
                    "tags": ["pet"],
                    "summary": "Finds Pets by status",
                    "produces": ["application/xml", "application/json"],
                    "parameters": [
                        {
                            "name": "status",
                            "in": "query",
                            "required": True,
                            "type": "array",
                            "items": {
                                "type": "string",
                                "enum": ["available", "pending", "sold"]
                            }
                        }
                    ],
                    "responses": {
                        "200": {
                            "description": "successful operation",
                            "schema": {
                                "type": "array",
                                "items": {"$ref": "#/definitions/Pet"}
                            }
                        }
                    }
                }
            },
            "/pet/{petId}": {
                "get": {
                    "operationId": "getPetById",
                    "tags": ["pet"],
                    "summary": "Find pet by ID",
                    "parameters": [
                        {
                            "name": "petId",
                            "in": "path",
                            "required": True,
                            "type": "integer",
                            "format": "int64"
                        }
                    ],
                    "responses": {
                        "200": {
                            "description": "successful operation",
                            "schema": {"$ref": "#/definitions/Pet"}
                        },
                        "404": {"description": "Pet not found"}
                    },
                    "security": [{"api_key": []}]
                }
            }
        },
        "definitions": {
            "Pet": {
                "type": "object",
                "required": ["name"],
                "properties": {
                    "id": {"type": "integer", "format": "int64"},
                    "name": {"type": "string", "example": "doggie"},
                    "status": {
                        "type": "string",
                        "enum": ["available", "pending", "sold"]
                    }
                }
            }
        }
    }


@pytest.fixture
def make_fetch_result() -> Callable[..., FetchResult]:
    """Build a FetchResult around an already validated document."""

    def _make(
        document: Dict[str, Any],
        source_url: str = "https://api.example.com/openapi.json",
        **kwargs: Any,
    ) -> FetchResult:
        generation = detect_generation(document)
        return FetchResult(
            document=document,
            generation=generation,
            source_url=source_url,
            spec_version=spec_version_label(document, generation),
            **kwargs,
        )

    return _make


@pytest.fixture
def http_site():
    """Serve aiohttp handlers on a local port for the duration of a block.

    Usage::

        async with http_site({"/openapi.json": handler}) as server:
            url = str(server.make_url("/openapi.json"))
    """

    @asynccontextmanager
    async def serve(routes: Dict[str, Handler]):
        app = web.Application()
        for path, handler in routes.items():
            app.router.add_route("*", path, handler)

        server = TestServer(app)
        await server.start_server()
        try:
            yield server
        finally:
            await server.close()

    return serve
