"""
sap_b1.core.models - Configuration and request/response containers
===================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})

DEFAULT_LANGUAGE = "29"
DEFAULT_PAGE_SIZE = 20
MAX_RETRIES = 5


@dataclass(frozen=True)
class Credentials:
    """
    Company database login for the Service Layer.

    Parameters
    ----------
    database : str
        Company database (``CompanyDB``)
    username : str
        Business One user code
    password : str
        Business One password
    language : str
        Service Layer language code (default: "29")

    Examples
    --------
    >>> creds = Credentials("SBODEMOUS", "manager", "secret")
    >>> creds.login_payload()["Language"]
    '29'
    """
    database: str
    username: str
    password: str
    language: str = DEFAULT_LANGUAGE

    def login_payload(self) -> Dict[str, str]:
        return {
            "CompanyDB": self.database,
            "UserName": self.username,
            "Password": self.password,
            "Language": self.language,
        }

    def __repr__(self) -> str:
        return (
            f"Credentials(database={self.database!r}, username={self.username!r}, "
            f"password='***', language={self.language!r})"
        )


@dataclass
class ServiceLayerConfig:
    """
    Connection configuration for the Service Layer.

    Parameters
    ----------
    base_url : str
        Service root, e.g. "https://b1.example.com:50000/b1s/v1"
    credentials : Credentials
        Login used for the initial session and every re-login
    timeout : float
        Default per-call timeout in seconds; 0 waits forever
    verify : bool or str
        TLS verification (True, False, or path to CA bundle). Passing False
        is the only way to accept the self-signed certificates Service Layer
        installations usually ship with.
    max_retries : int
        Shared retry ceiling for 401/502 recoveries (default: 5)
    default_page_size : int
        Page size used to compute ``$skip`` when none is given
    user_agent : str
        User-Agent header value
    """
    base_url: str
    credentials: Credentials
    timeout: float = 0.0
    verify: Union[bool, str] = True
    max_retries: int = MAX_RETRIES
    default_page_size: int = DEFAULT_PAGE_SIZE
    user_agent: str = "sap-b1-sdk/0.1"


@dataclass
class Session:
    """Authenticated connection state. Owned and mutated by SessionManager only."""
    base_url: str
    cookie: str = ""
    route_token: str = ""


@dataclass(frozen=True)
class Operation:
    """
    One logical Service Layer call.

    Parameters
    ----------
    method : str
        GET, POST, PUT, PATCH or DELETE
    path : str
        Path relative to the service root, e.g. "Items('A001')"
    headers : mapping
        Extra request headers
    body : any, optional
        JSON-serializable payload; None sends no payload
    """
    method: str
    path: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None

    def __post_init__(self) -> None:
        method = (self.method or "").upper()
        if method not in METHODS:
            raise ValueError(f"Unsupported method {self.method!r}; expected one of {sorted(METHODS)}")
        object.__setattr__(self, "method", method)


@dataclass
class PagedResult:
    """
    Result of a single Service Layer call.

    Attributes
    ----------
    items : list
        The ``value`` array of a collection response (empty otherwise)
    previous : bool, optional
        True when an earlier page exists; only set when paging was requested
    next : bool, optional
        True when the provider returned a continuation link; only set when
        paging was requested
    next_link : str, optional
        Provider continuation link (``odata.nextLink``)
    data : any
        Full decoded payload, None for empty responses
    """
    items: List[Any] = field(default_factory=list)
    previous: Optional[bool] = None
    next: Optional[bool] = None
    next_link: Optional[str] = None
    data: Any = None
