from fastapi import Depends, Request

from paygate.core.config import Settings
from paygate.paywall.issuer import DownloadLinkIssuer
from paygate.paywall.verifier import PaymentVerifier
from paygate.services.factory import Services


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_settings(services: Services = Depends(get_services)) -> Settings:
    return services.settings


def get_verifier(services: Services = Depends(get_services)) -> PaymentVerifier:
    return services.verifier


def get_issuer(services: Services = Depends(get_services)) -> DownloadLinkIssuer:
    return services.issuer
