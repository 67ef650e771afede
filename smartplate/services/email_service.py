'''
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Thu Aug 07 2025
# SPDX-License-Identifier: MIT
'''

import logging

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from smartplate.config import settings
from smartplate.db import models
from smartplate.services.verification import DEFAULT_REJECTION_REASON

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    models.FoodRequestStatus.APPROVED: "has been approved and is now visible to donors",
    models.FoodRequestStatus.CANCELLED: "has been rejected by our admin team",
    models.FoodRequestStatus.MATCHED: "has been accepted by a donor",
    models.FoodRequestStatus.IN_PROGRESS: "has been picked up by a volunteer for delivery",
    models.FoodRequestStatus.COMPLETED: "has been delivered",
}


class EmailService:
    def __init__(self):
        self.sg = SendGridAPIClient(settings.sendgrid_api_key)
        self.sender_email = settings.mail_sender_email
        self.sender_name = settings.mail_sender_name

    async def send_verification_decision(
        self, to_email: str, name: str, subject_label: str, approved: bool, reason: str = None
    ):
        """
        Tells an NGO or volunteer the outcome of their verification review.
        """
        if approved:
            subject = f"Your {subject_label} verification is approved"
            body = f"<p>Your {subject_label} account has been verified. You now have access to all features.</p>"
        else:
            subject = f"Your {subject_label} verification was rejected"
            body = (
                f"<p>Your verification was rejected for the following reason:</p>"
                f"<p><strong>{reason or DEFAULT_REJECTION_REASON}</strong></p>"
                f"<p>Please update your information and resubmit.</p>"
            )
        html_content = f"""
        <html>
        <body>
            <p>Hi {name},</p>
            {body}
            <p>Best regards,</p>
            <p>{self.sender_name}</p>
        </body>
        </html>
        """
        await self._send_email(to_email, subject, html_content)

    async def send_food_request_update(self, to_email: str, name: str, food_request: models.FoodRequest):
        status = models.FoodRequestStatus(food_request.status)
        summary = STATUS_MESSAGES.get(status, f"is now {status.value}")
        subject = f"Food request update: {food_request.title}"
        reason = ""
        if status == models.FoodRequestStatus.CANCELLED and food_request.rejection_reason:
            reason = f"<p><strong>Reason:</strong> {food_request.rejection_reason}</p>"
        html_content = f"""
        <html>
        <body>
            <p>Hi {name},</p>
            <p>Your request <strong>{food_request.title}</strong>
            ({food_request.quantity_needed} {food_request.quantity_unit}) {summary}.</p>
            {reason}
            <p>Thank you for using SmartPlate!</p>
            <p>{self.sender_name}</p>
        </body>
        </html>
        """
        await self._send_email(to_email, subject, html_content)

    async def _send_email(self, to_email: str, subject: str, html_content: str):
        """
        Internal helper to send an email using SendGrid. Failures are logged, not raised.
        """
        message = Mail(
            from_email=(self.sender_email, self.sender_name),
            to_emails=to_email,
            subject=subject,
            html_content=html_content
        )
        try:
            response = self.sg.send(message)
            logger.info("Email sent to %s. Status Code: %s", to_email, response.status_code)
        except Exception as e:
            logger.error("Error sending email to %s: %s", to_email, e)
