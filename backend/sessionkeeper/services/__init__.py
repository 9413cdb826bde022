"""Service layer.

Subpackages
-----------
- :mod:`sessionkeeper.services.sessions`
    The token lifecycle engine: :class:`TokenIssuer`, :class:`TokenValidator`,
    :class:`RevocationManager` and :class:`SessionLimiter`, wired per app by
    ``init_app``.
- :mod:`sessionkeeper.services.auth`
    Use cases exposed over HTTP (login, refresh, logout, device management).
- :mod:`sessionkeeper.services._shared`
    Ports, errors, the result type and :class:`BaseService`.

Nothing is re-exported here: repositories import the shared ports, and an
eager import of the services would close an import cycle through the Unit of
Work.
"""
