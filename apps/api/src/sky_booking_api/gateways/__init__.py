"""Contracts and simulated implementations of the saga's external collaborators."""

from .base import (
    EmailMessage,
    MetricsSink,
    NotificationSender,
    PaymentAuthorization,
    PaymentGateway,
    ProviderBooking,
    ProviderBookingGateway,
    Refund,
)
from .simulated import (
    LoggingMetricsSink,
    LoggingNotificationSender,
    SimulatedPaymentGateway,
    SimulatedProviderGateway,
    generate_pnr,
)

__all__ = [
    "EmailMessage",
    "LoggingMetricsSink",
    "LoggingNotificationSender",
    "MetricsSink",
    "NotificationSender",
    "PaymentAuthorization",
    "PaymentGateway",
    "ProviderBooking",
    "ProviderBookingGateway",
    "Refund",
    "SimulatedPaymentGateway",
    "SimulatedProviderGateway",
    "generate_pnr",
]
