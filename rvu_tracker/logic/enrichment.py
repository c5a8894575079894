"""Overwrite server-side work RVU values with the bundled catalog values."""

import logging
from dataclasses import replace
from typing import Iterable, List

from ..data.models import Visit
from .catalog import ReferenceCatalog

logger = logging.getLogger(__name__)


def enrich_visits(visits: Iterable[Visit], catalog: ReferenceCatalog) -> List[Visit]:
    """Return copies of visits with procedure work RVU taken from the catalog.

    Procedures whose code is not in the catalog keep the server value. The
    input visits are never mutated. With no catalog loaded this is a
    passthrough.
    """
    visits = list(visits)
    if not catalog.is_loaded:
        logger.debug("Catalog not loaded, skipping RVU enrichment")
        return [replace(v, procedures=list(v.procedures)) for v in visits]

    enriched = []
    updated = 0
    for visit in visits:
        procedures = []
        for proc in visit.procedures:
            rvu = catalog.lookup_rvu(proc.code)
            if rvu is not None:
                if rvu != proc.work_rvu:
                    updated += 1
                procedures.append(replace(proc, work_rvu=rvu))
            else:
                procedures.append(replace(proc))
        enriched.append(replace(visit, procedures=procedures))

    if updated:
        logger.info(f"Enriched {updated} procedures with catalog RVU values")
    return enriched


__all__ = ['enrich_visits']
