"""Referral codes and rewards"""
import logging
import random
import string
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from dfixkart.core.models import User
from dfixkart.pricing.services import quantize_money
from .models import Referral

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_referral_code(user):
    """REF + last 6 characters of the user id (zero padded) + 3 random characters"""
    id_part = str(user.pk)[-6:].upper().zfill(6)
    while True:
        code = f"REF{id_part}{''.join(random.choices(CODE_ALPHABET, k=3))}"
        if not User.objects.filter(referral_code=code).exists():
            return code


def ensure_referral_code(user):
    """Create the user's referral code on first use"""
    if not user.referral_code:
        user.referral_code = generate_referral_code(user)
        user.save(update_fields=['referral_code'])
        logger.info(f"Referral code created for user {user.id}")
    return user.referral_code


def calculate_reward(order_total):
    """Reward for a qualifying order, None when the order is below the minimum"""
    total = Decimal(str(order_total))
    if total < Decimal(settings.REFERRAL_MIN_ORDER_AMOUNT):
        return None
    reward = total * Decimal(settings.REFERRAL_REWARD_PERCENT) / 100
    return quantize_money(min(reward, Decimal(settings.REFERRAL_MAX_REWARD)))


def process_referral_reward(user, order):
    """
    Complete the oldest pending referral of user with a qualifying order.

    Returns the completed Referral, or None when nothing qualified.
    """
    with transaction.atomic():
        referral = Referral.objects.select_for_update().filter(
            referred=user, status=Referral.STATUS_PENDING
        ).order_by('created_at', 'id').first()
        if referral is None:
            return None

        reward = calculate_reward(order.total)
        if reward is None:
            logger.info(f"Order {order.order_number} below referral minimum; referral {referral.id} stays pending")
            return None

        referral.status = Referral.STATUS_COMPLETED
        referral.reward_amount = reward
        referral.order = order
        referral.completed_at = timezone.now()
        referral.save(update_fields=['status', 'reward_amount', 'order', 'completed_at', 'updated_at'])

    logger.info(f"Referral {referral.id} completed with reward {reward} (order {order.order_number})")
    return referral
