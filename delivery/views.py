"""API views for the delivery engine."""

from pydantic import BaseModel, ValidationError
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

import structlog

from delivery.auth.oauth2 import OAuth2Authentication
from delivery.auth.permissions import HasAdminScope, HasClientScope
from delivery.models.delivery_attempt import SUCCESS_STATUSES
from delivery.schemas.device import DeviceRegistration, DeviceTokenDetail
from delivery.schemas.notification import (
    AcknowledgeCriticalRequest,
    AcknowledgeCriticalResponse,
    AttemptHistoryResponse,
    BroadcastRequest,
    CriticalNotificationEntry,
    DeliveryAttemptDetail,
    DrainCriticalResponse,
    NotificationSubmission,
    SubmissionResponse,
)
from delivery.services import build_engine, health_service

logger = structlog.get_logger(__name__)


def _dump(model: BaseModel) -> dict:
    return model.model_dump(mode="json", by_alias=True)


def _bad_request(e: ValidationError, message: str = "Invalid request parameters"):
    return Response(
        {
            "error": "bad_request",
            "message": message,
            "errors": e.errors(include_url=False, include_context=False),
        },
        status=status.HTTP_400_BAD_REQUEST,
    )


class _DeliveryAPIView(APIView):
    authentication_classes = (OAuth2Authentication,)
    permission_classes = (HasClientScope,)


class LivenessCheckView(APIView):
    """Liveness probe endpoint for Kubernetes.

    Exempt from authentication so probes can reach it.
    """

    authentication_classes = ()
    permission_classes = (AllowAny,)

    def get(self, _request):
        liveness = health_service.get_liveness_status()
        return Response(liveness.model_dump(), status=status.HTTP_200_OK)


class ReadinessCheckView(APIView):
    """Readiness probe endpoint for Kubernetes.

    Returns 200 with a degraded status when the database or Redis is down,
    so the pod stays in rotation while the dependency recovers.
    """

    authentication_classes = ()
    permission_classes = (AllowAny,)

    def get(self, _request):
        readiness = health_service.get_readiness_status()
        return Response(readiness.model_dump(mode="json"), status=status.HTTP_200_OK)


class NotificationSubmitView(_DeliveryAPIView):
    """Accept a notification request for asynchronous delivery."""

    def post(self, request):
        """Handle POST request to submit a notification.

        Returns:
            202 Accepted with SubmissionResponse when accepted
            400 Bad Request if the body or the request itself is invalid
            503 Service Unavailable if the request could not be persisted
        """
        try:
            submission = NotificationSubmission(**request.data)
        except ValidationError as e:
            logger.warning(
                "Invalid request body for notification submission",
                validation_errors=e.errors(include_url=False, include_context=False),
            )
            return _bad_request(e)

        accepted = build_engine().router.submit(submission)
        body = _dump(
            SubmissionResponse(
                accepted=accepted, notification_id=submission.notification_id
            )
        )
        if not accepted:
            return Response(
                {
                    **body,
                    "error": "bad_request",
                    "message": "Notification request rejected",
                },
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(body, status=status.HTTP_202_ACCEPTED)


class BroadcastView(_DeliveryAPIView):
    """Fan an announcement out to the listed users or to every reachable user."""

    permission_classes = (HasAdminScope,)

    def post(self, request):
        try:
            broadcast = BroadcastRequest(**request.data)
        except ValidationError as e:
            logger.warning(
                "Invalid request body for broadcast",
                validation_errors=e.errors(include_url=False, include_context=False),
            )
            return _bad_request(e)

        response = build_engine().router.broadcast(
            broadcast, user_ids=broadcast.user_ids
        )
        return Response(_dump(response), status=status.HTTP_202_ACCEPTED)


class AttemptHistoryView(_DeliveryAPIView):
    """Delivery attempt history of one notification request."""

    def get(self, _request, notification_id):
        _, attempts = build_engine().router.attempt_history(notification_id)
        response = AttemptHistoryResponse(
            notification_id=notification_id,
            delivered=any(a.status in SUCCESS_STATUSES for a in attempts),
            attempts=[DeliveryAttemptDetail.model_validate(a) for a in attempts],
        )
        return Response(_dump(response), status=status.HTTP_200_OK)


class ConfirmDeliveryView(_DeliveryAPIView):
    """Client acknowledgment that a push reached the device."""

    def post(self, _request, attempt_id):
        attempt = build_engine().router.confirm_delivery(attempt_id)
        return Response(
            _dump(DeliveryAttemptDetail.model_validate(attempt)),
            status=status.HTTP_200_OK,
        )


class DeviceRegistrationView(_DeliveryAPIView):
    """Register or refresh the push token of a device."""

    def post(self, request):
        try:
            registration = DeviceRegistration(**request.data)
        except ValidationError as e:
            logger.warning(
                "Invalid request body for device registration",
                validation_errors=e.errors(include_url=False, include_context=False),
            )
            return _bad_request(e)

        device = build_engine().router.register_device(registration)
        return Response(
            _dump(DeviceTokenDetail.model_validate(device)),
            status=status.HTTP_200_OK,
        )


class DeviceDeactivationView(_DeliveryAPIView):
    """Soft-delete a device so it is no longer targeted."""

    def delete(self, _request, user_id, device_id):
        deactivated = build_engine().router.deactivate_device(user_id, device_id)
        if not deactivated:
            return Response(
                {
                    "error": "not_found",
                    "message": "No active device found",
                },
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)


class DrainCriticalView(_DeliveryAPIView):
    """Hand pending fallback notifications to a foregrounded client."""

    def post(self, _request, user_id):
        entries = build_engine().router.drain_critical(user_id)
        response = DrainCriticalResponse(
            user_id=user_id,
            notifications=[
                CriticalNotificationEntry(
                    notification_id=entry.notification_id,
                    user_id=entry.user_id,
                    notification=entry.notification_data,
                    created_at=entry.created_at,
                    delivered_at=entry.delivered_at,
                )
                for entry in entries
            ],
        )
        return Response(_dump(response), status=status.HTTP_200_OK)


class AcknowledgeCriticalView(_DeliveryAPIView):
    """Delete fallback notifications the client has consumed."""

    def post(self, request, user_id):
        try:
            acknowledgment = AcknowledgeCriticalRequest(**request.data)
        except ValidationError as e:
            return _bad_request(e)

        deleted = build_engine().router.acknowledge_critical(
            user_id, acknowledgment.notification_ids
        )
        response = AcknowledgeCriticalResponse(user_id=user_id, deleted_count=deleted)
        return Response(_dump(response), status=status.HTTP_200_OK)


class MetricsView(_DeliveryAPIView):
    """Aggregate delivery counters. Requires the admin scope."""

    permission_classes = (HasAdminScope,)

    def get(self, _request):
        metrics = build_engine().router.get_metrics()
        return Response(_dump(metrics), status=status.HTTP_200_OK)
