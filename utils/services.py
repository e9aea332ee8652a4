"""Wiring of the business services onto the Flask app."""
from dataclasses import dataclass

from flask import Flask, current_app

from config import ServiceSettings
from utils.auth_service import AuthService
from utils.chatbot import ChatbotService
from utils.complaint_service import ComplaintService
from utils.email_service import StatusNotifier
from utils.storage import LocalPhotoStorage

EXTENSION_KEY = "mycity_services"


@dataclass
class Services:
    settings: ServiceSettings
    auth: AuthService
    complaints: ComplaintService
    chatbot: ChatbotService


def init_services(app: Flask) -> Services:
    settings = ServiceSettings.from_mapping(app.config)
    storage = LocalPhotoStorage(
        settings.upload_folder,
        settings.photo_base_url,
        app.logger,
        max_bytes=settings.max_image_bytes,
    )
    notifier = StatusNotifier(settings.mail, app.logger)
    complaints = ComplaintService(settings, storage, notifier, app.logger)
    services = Services(
        settings=settings,
        auth=AuthService(settings, app.logger),
        complaints=complaints,
        chatbot=ChatbotService(complaints),
    )
    app.extensions[EXTENSION_KEY] = services
    return services


def get_services() -> Services:
    return current_app.extensions[EXTENSION_KEY]
