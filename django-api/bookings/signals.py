"""Django signals that trigger waitlist promotion when capacity grows."""

import logging

from django.db import transaction
from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from bookings.domain import ClassInstanceId
from bookings.models import ClassInstance

logger = logging.getLogger(__name__)


@receiver(pre_save, sender=ClassInstance)
def remember_previous_capacity(sender, instance, **kwargs):
    """Stash the stored capacity so post_save can tell whether it grew."""
    if instance._state.adding:
        instance._previous_capacity = None
        return
    instance._previous_capacity = (
        sender.objects.filter(pk=instance.pk).values_list("max_capacity", flat=True).first()
    )


@receiver(post_save, sender=ClassInstance)
def promote_after_capacity_increase(sender, instance, created, **kwargs):
    """Hand newly opened seats to the waitlist, once per seat."""
    previous = getattr(instance, "_previous_capacity", None)
    if created or previous is None or instance.max_capacity <= previous:
        return

    from bookings.services.factory import build_booking_service

    def fill():
        promoted = build_booking_service().fill_open_seats(ClassInstanceId(instance.pk))
        logger.info(
            "Capacity of class %s raised from %d to %d, promoted %d waitlisted members",
            instance.pk,
            previous,
            instance.max_capacity,
            len(promoted),
        )

    transaction.on_commit(fill)
