"""Data layer - domain models, local cache, remote gateway and session repositories."""

from .models import (
    ProcedureCode,
    VisitProcedure,
    Visit,
    Favorite,
    ProcedureDraft,
    VisitDraft,
)
from .cache_store import CacheStore
from .gateway import RemoteDataGateway
from .repositories import VisitRepository, FavoriteRepository

__all__ = [
    'ProcedureCode',
    'VisitProcedure',
    'Visit',
    'Favorite',
    'ProcedureDraft',
    'VisitDraft',
    'CacheStore',
    'RemoteDataGateway',
    'VisitRepository',
    'FavoriteRepository',
]
