# app/client/__init__.py

from client.results import ErrorKind, LobbyError, Success, Failure, Result, LobbyDetails
from client.identity import Identity, IdentityProvider, SessionIdentityProvider
from client.http import create_http_client
from client.gateway import RemoteLobbyGateway, HttpLobbyGateway
from client.retry import retry_with_backoff, RetryingLobbyGateway
from client.cache import LocalLobbyCache, SqlLobbyCache
from client.reconciler import LobbyReconciler
from client.auth_client import AuthClient
from client.controllers import (
    ViewStatus,
    LobbyListController,
    LobbyDetailController,
    CreateLobbyController,
)

__all__ = [
    'ErrorKind',
    'LobbyError',
    'Success',
    'Failure',
    'Result',
    'LobbyDetails',
    'Identity',
    'IdentityProvider',
    'SessionIdentityProvider',
    'create_http_client',
    'RemoteLobbyGateway',
    'HttpLobbyGateway',
    'retry_with_backoff',
    'RetryingLobbyGateway',
    'LocalLobbyCache',
    'SqlLobbyCache',
    'LobbyReconciler',
    'AuthClient',
    'ViewStatus',
    'LobbyListController',
    'LobbyDetailController',
    'CreateLobbyController',
]
