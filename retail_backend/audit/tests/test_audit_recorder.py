# audit/tests/test_audit_recorder.py

import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.test import SimpleTestCase, TestCase

from audit.models import AuditEvent
from audit.services.audit_service import AuditRecorder

User = get_user_model()


class AuditRecorderTests(TestCase):
    def setUp(self):
        self.recorder = AuditRecorder("customer")
        self.user = User.objects.create_user(username="auditor", password="pass")

    def test_log_records_event(self):
        event = self.recorder.log(
            "customer.payment.allocated",
            "c-1",
            {"total_allocated": 100},
            actor=self.user,
        )

        self.assertEqual(event.entity_type, "customer")
        self.assertEqual(event.entity_id, "c-1")
        self.assertEqual(event.payload, {"total_allocated": 100})
        self.assertEqual(event.actor, self.user)

    def test_anonymous_actor_is_not_linked(self):
        event = self.recorder.log("x", "c-2", None, actor=AnonymousUser())

        self.assertIsNone(event.actor)
        self.assertEqual(event.payload, {})

    def test_events_are_immutable(self):
        event = self.recorder.log("x", "c-3", {})

        with self.assertRaises(RuntimeError):
            event.save()
        with self.assertRaises(RuntimeError):
            event.delete()
        self.assertEqual(AuditEvent.objects.count(), 1)


class AuditLoggingConfigTests(SimpleTestCase):
    def test_app_loggers_follow_log_level(self):
        expected = logging.getLevelName(settings.LOG_LEVEL)

        for name in ("audit.services.audit_service", "customers.models"):
            with self.subTest(logger=name):
                self.assertEqual(logging.getLogger(name).getEffectiveLevel(), expected)
