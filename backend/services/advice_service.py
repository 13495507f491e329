"""
Advice Service

Orchestrates one advice request:

    resolve params (per target) + venue profile   (concurrent, best-effort)
    -> aggregate reports                          (fatal on failure)
    -> pick the weather reading                   (override, else historical)
    -> select scored reports                      (seasonal window, top-weighted)
    -> rank methods/flies/spots + predict rod average
    -> diary tactical advice + personal stats     (best-effort)
    -> categorize season/weather
    -> assemble response

Every request is independent; nothing is cached between calls.
"""

import asyncio
import time
from typing import Dict, List, Optional, Tuple

import structlog

from models.advice import (
    AdviceRequest,
    AdviceResponse,
    DataConfidence,
    ModelInfo,
    WeatherReading,
)
from models.diary import PersonalStats, TacticalAdvice
from models.observation import Observation
from models.prediction import (
    Prediction,
    PredictionParams,
    PredictionTarget,
    VenueProfile,
)
from services.conditions import categorize, iso_week, within_week_window
from services.metrics import ADVICE_LATENCY, ADVICE_REQUESTS, PARAMS_SOURCE_USED
from services.diary_insights import DiaryInsightsService
from services.params_resolver import PredictionParamsResolver, VenueProfileLookup
from services.prediction_engine import (
    annotate_confidence,
    historical_reading,
    predict_rod_average,
    rank_items,
    report_data_confidence,
    select_top_weighted,
)
from services.report_aggregator import ReportAggregator, ReportSourceError
from services.tactical_engine import tactical_data_confidence

logger = structlog.get_logger(__name__)


class AdviceUnavailableError(Exception):
    """
    Advice could not be produced because historical reports could not be read.

    Distinct from a successful read that matched nothing, which yields the
    zero/LOW prediction instead.
    """

    def __init__(self, reason: str, original_error: Optional[Exception] = None):
        self.reason = reason
        self.original_error = original_error
        super().__init__(f"Advice unavailable: {reason}")


class AdviceService:
    """Service for generating statistical fishing advice"""

    def __init__(
        self,
        params_resolver: PredictionParamsResolver,
        profile_lookup: VenueProfileLookup,
        report_aggregator: ReportAggregator,
        diary_insights: Optional[DiaryInsightsService] = None,
    ):
        self.params_resolver = params_resolver
        self.profile_lookup = profile_lookup
        self.report_aggregator = report_aggregator
        self.diary_insights = diary_insights

    async def get_advice(self, request: AdviceRequest) -> AdviceResponse:
        """
        Generate advice for a venue and date.

        Raises:
            AdviceUnavailableError: the report sources could not be read
        """
        started = time.perf_counter()
        try:
            response = await self._generate(request)
        except AdviceUnavailableError:
            ADVICE_REQUESTS.labels(kind="prediction", outcome="unavailable").inc()
            raise
        except Exception:
            ADVICE_REQUESTS.labels(kind="prediction", outcome="error").inc()
            raise
        finally:
            ADVICE_LATENCY.labels(kind="prediction").observe(time.perf_counter() - started)

        ADVICE_REQUESTS.labels(kind="prediction", outcome="ok").inc()
        return response

    async def _generate(self, request: AdviceRequest) -> AdviceResponse:
        params_by_target, profile = await asyncio.gather(
            self.params_resolver.resolve_targets(request.venue),
            self.profile_lookup.get_profile(request.venue),
        )
        rod_params = params_by_target[PredictionTarget.ROD_AVERAGE]

        try:
            observations = await self.report_aggregator.aggregate(
                request.venue, request.target_date, request.user_id
            )
        except ReportSourceError as e:
            logger.error(
                "advice_unavailable",
                venue=request.venue,
                target_date=request.target_date.isoformat(),
                error=e.message,
            )
            raise AdviceUnavailableError(e.message, e) from e

        target_week = iso_week(request.target_date)
        if request.weather_override is not None:
            weather, weather_source = request.weather_override, "override"
        else:
            weather = historical_reading(observations, target_week, rod_params.week_window)
            weather_source = "historical"
        reading = weather if request.weather_matched else None

        scored = self._select_observations(
            observations, request, target_week, rod_params, reading
        )
        prediction = self._predict(scored, request, params_by_target, reading)
        tactical, personal = await self._diary_insights(request, rod_params, weather)
        conditions = categorize(request.target_date, request.weather_override)

        for target, params in params_by_target.items():
            PARAMS_SOURCE_USED.labels(target=target.value, source=params.source.value).inc()

        response = AdviceResponse(
            prediction=prediction,
            season=conditions.season,
            weather_category=conditions.weather_category,
            report_count=len(observations),
            personal_report_count=sum(1 for obs in observations if obs.is_personal),
            matched_report_count=len(scored),
            target_week=target_week,
            params_used_source=rod_params.source,
            confidence_note=annotate_confidence(prediction.rod_average, profile),
            model_info=self._model_info(params_by_target, profile),
            weather=weather,
            weather_source=weather_source,
            tactical=tactical,
            personal=personal,
            data_confidence=DataConfidence(
                report_data=report_data_confidence(len(scored)),
                tactical_data=tactical_data_confidence(tactical.period_count),
                personal_data="available" if personal.has_personal else "insufficient",
            ),
        )

        logger.info(
            "advice_generated",
            venue=request.venue,
            target_date=request.target_date.isoformat(),
            report_count=response.report_count,
            personal_report_count=response.personal_report_count,
            matched_report_count=response.matched_report_count,
            session_count=tactical.session_count,
            weather_source=weather_source,
            params_source=rod_params.source.value,
            confidence=prediction.rod_average.confidence.value,
        )
        return response

    async def _diary_insights(
        self,
        request: AdviceRequest,
        rod_params: PredictionParams,
        weather: WeatherReading,
    ) -> Tuple[TacticalAdvice, PersonalStats]:
        if self.diary_insights is None:
            return TacticalAdvice(), PersonalStats()
        return await self.diary_insights.get_insights(
            request.venue,
            request.target_date,
            rod_params.week_window,
            weather,
            request.user_id,
        )

    @staticmethod
    def _select_observations(
        observations: List[Observation],
        request: AdviceRequest,
        target_week: int,
        params: PredictionParams,
        reading: Optional[WeatherReading],
    ) -> List[Observation]:
        scored = observations
        if request.seasonal_window:
            scored = [
                obs
                for obs in scored
                if within_week_window(obs.observed_date, target_week, params.week_window)
            ]
        if request.top_weighted:
            scored = select_top_weighted(scored, request.target_date, params, reading)
        return scored

    @staticmethod
    def _predict(
        observations: List[Observation],
        request: AdviceRequest,
        params_by_target: Dict[PredictionTarget, PredictionParams],
        reading: Optional[WeatherReading],
    ) -> Prediction:
        # rod_average params weight every consumer; other targets only size their list
        weighting = params_by_target[PredictionTarget.ROD_AVERAGE]

        def ranked(field: str, target: PredictionTarget):
            return rank_items(
                observations,
                field,
                request.target_date,
                weighting,
                top_n=params_by_target[target].top_n,
                reading=reading,
            )

        return Prediction(
            rod_average=predict_rod_average(
                observations, request.target_date, weighting, reading
            ),
            methods=ranked("methods", PredictionTarget.METHODS),
            flies=ranked("flies", PredictionTarget.FLIES),
            spots=ranked("spots", PredictionTarget.SPOTS),
        )

    @staticmethod
    def _model_info(
        params_by_target: Dict[PredictionTarget, PredictionParams],
        profile: Optional[VenueProfile],
    ) -> ModelInfo:
        return ModelInfo(
            params_source=params_by_target[PredictionTarget.ROD_AVERAGE].source,
            params_sources={
                target.value: params.source for target, params in params_by_target.items()
            },
            data_quality=profile.data_quality_flag if profile else "unknown",
            character_notes=profile.character_notes if profile else None,
        )
