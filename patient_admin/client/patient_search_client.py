"""
Cliente HTTP de la API de visitas.

Arma los query params igual que el frontend (solo los campos presentes),
interpreta las respuestas paginadas y extrae un mensaje legible de los
errores. Incluye cache en memoria (TTL) para no repetir consultas y un
prefetch de la página siguiente.
"""

import logging
import time
from typing import Any, Callable, Mapping, Optional, TypeVar
from urllib.parse import urlencode
from uuid import UUID

import httpx

from patient_admin.config import get_settings
from patient_admin.schemas.patient_visit import (
    HospitalResponse,
    PatientVisitRecord,
    SearchCriteria,
    SearchResultPage,
)

settings = get_settings()
logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Error searching patients. Please try again."
INVALID_RESPONSE_MESSAGE = "Invalid response from the patient visits API"

T = TypeVar("T")


class PatientSearchClientError(Exception):
    """Error de comunicación con la API de visitas."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


# ── Query params ─────────────────────────────────────


def build_search_params(criteria: SearchCriteria) -> dict[str, str]:
    """
    Convierte criterios en query params. Los campos ausentes o vacíos no se
    envían (nunca se manda un string vacío ni null).
    """
    params: dict[str, str] = {}
    if criteria.search_term:
        params["searchTerm"] = criteria.search_term
    if criteria.hospital_id is not None:
        params["hospitalId"] = str(criteria.hospital_id)
    if criteria.from_date is not None:
        params["fromDate"] = criteria.from_date.isoformat()
    if criteria.to_date is not None:
        params["toDate"] = criteria.to_date.isoformat()
    params["page"] = str(criteria.page)
    params["pageSize"] = str(criteria.page_size)
    return params


def parse_search_params(params: Mapping[str, str]) -> SearchCriteria:
    """Inverso de build_search_params: los campos ausentes quedan en None."""
    present = {key: value for key, value in params.items() if value not in (None, "")}
    return SearchCriteria.model_validate(present)


# ── Mensajes de error ────────────────────────────────


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def extract_error_message(exc: BaseException | None) -> str:
    """
    Mensaje para el usuario, en orden de preferencia: campo `error` del
    servidor, campo `message`, texto del error de transporte, mensaje fijo.
    """
    if isinstance(exc, httpx.HTTPStatusError):
        body = _json_body(exc.response)
        if isinstance(body, dict):
            for key in ("error", "message"):
                value = body.get(key)
                if isinstance(value, str) and value:
                    return value
    text = str(exc) if exc is not None else ""
    return text or DEFAULT_ERROR_MESSAGE


def _parse_hospitals(payload: Any) -> list[HospitalResponse]:
    if not isinstance(payload, list):
        raise ValueError(f"Se esperaba una lista de hospitales, llegó {type(payload).__name__}")
    return [HospitalResponse.model_validate(item) for item in payload]


# ── Cliente ──────────────────────────────────────────


class PatientSearchClient:
    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        search_cache_ttl: int | None = None,
        hospitals_cache_ttl: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.CLIENT_API_BASE_URL
        self.timeout = timeout or settings.CLIENT_TIMEOUT_SECONDS
        self.search_cache_ttl = (
            settings.CLIENT_SEARCH_CACHE_TTL_SECONDS
            if search_cache_ttl is None else search_cache_ttl
        )
        self.hospitals_cache_ttl = (
            settings.CLIENT_HOSPITALS_CACHE_TTL_SECONDS
            if hospitals_cache_ttl is None else hospitals_cache_ttl
        )
        self._transport = transport
        # Formato: {key: {"data": ..., "timestamp": float}}
        self._cache: dict[str, dict] = {}

    # ── Cache en memoria ─────────────────────────────

    def _cache_get(self, key: str, ttl: int) -> Optional[Any]:
        """Obtiene un resultado del cache si existe y no ha expirado."""
        entry = self._cache.get(key)
        if entry is None:
            return None
        if time.time() - entry["timestamp"] > ttl:
            del self._cache[key]
            return None
        return entry["data"]

    def _cache_set(self, key: str, data: Any) -> None:
        """Guarda un resultado y descarta las entradas vencidas."""
        now = time.time()
        expired = [
            k for k, entry in self._cache.items()
            if now - entry["timestamp"] > self._ttl_for(k)
        ]
        for k in expired:
            del self._cache[k]
        self._cache[key] = {"data": data, "timestamp": now}

    def _ttl_for(self, key: str) -> int:
        if key == "hospitals":
            return self.hospitals_cache_ttl
        return self.search_cache_ttl

    # ── Transporte ───────────────────────────────────

    async def _get(
        self,
        path: str,
        parse: Callable[[Any], T],
        params: dict[str, str] | None = None,
    ) -> T:
        """
        GET a la API y parseo del body con `parse`. Cualquier fallo (HTTP,
        conexión, JSON inválido o forma inesperada) se convierte en
        PatientSearchClientError.
        """
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(path, params=params)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise PatientSearchClientError(
                extract_error_message(exc), exc.response.status_code
            ) from exc
        except httpx.HTTPError as exc:
            logger.error(f"Error de conexión con la API de visitas: {exc!r}")
            raise PatientSearchClientError(extract_error_message(exc)) from exc

        # JSONDecodeError y ValidationError son ValueError
        try:
            return parse(response.json())
        except ValueError as exc:
            logger.warning(f"Respuesta inválida de {path}: {exc!r}")
            raise PatientSearchClientError(
                INVALID_RESPONSE_MESSAGE, response.status_code
            ) from exc

    # ── Operaciones ──────────────────────────────────

    async def search_patient_visits(
        self, criteria: SearchCriteria
    ) -> SearchResultPage[PatientVisitRecord]:
        params = build_search_params(criteria)
        key = f"visits:{urlencode(sorted(params.items()))}"

        cached = self._cache_get(key, self.search_cache_ttl)
        if cached is not None:
            return cached

        page = await self._get(
            "/api/patients/visits",
            SearchResultPage[PatientVisitRecord].model_validate,
            params=params,
        )
        self._cache_set(key, page)
        return page

    async def get_patient_visit(
        self, patient_id: UUID | str, visit_id: UUID | str
    ) -> PatientVisitRecord:
        if not patient_id or not visit_id:
            raise PatientSearchClientError("PatientId and VisitId are required")

        key = f"visit:{patient_id}:{visit_id}"
        cached = self._cache_get(key, self.search_cache_ttl)
        if cached is not None:
            return cached

        record = await self._get(
            f"/api/patients/{patient_id}/visits/{visit_id}",
            PatientVisitRecord.model_validate,
        )
        self._cache_set(key, record)
        return record

    async def get_all_hospitals(self) -> list[HospitalResponse]:
        cached = self._cache_get("hospitals", self.hospitals_cache_ttl)
        if cached is not None:
            return cached

        hospitals = await self._get("/api/patients/hospitals", _parse_hospitals)
        self._cache_set("hospitals", hospitals)
        return hospitals

    async def prefetch_next_page(
        self,
        criteria: SearchCriteria,
        current: SearchResultPage[PatientVisitRecord],
    ) -> bool:
        """
        Precarga en cache la página siguiente si la actual indica que existe.
        Los fallos no se propagan: la página visible no cambia.
        """
        if not current.has_next_page:
            return False

        next_criteria = criteria.model_copy(update={"page": criteria.page + 1})
        try:
            await self.search_patient_visits(next_criteria)
        except PatientSearchClientError as exc:
            logger.debug(f"Prefetch de la página {next_criteria.page} falló: {exc.message}")
            return False
        return True
