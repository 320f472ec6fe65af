"""
Cache invalidation signals
Automatically invalidate cache when data changes
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging

from backoffice.locations.models import Branch
from .model_cache import invalidate_branch_cache

logger = logging.getLogger('backoffice.core')


@receiver(post_save, sender=Branch)
def invalidate_branch_on_save(sender, instance, created, **kwargs):
    """Invalidate branch cache when a branch is created or updated"""
    invalidate_branch_cache(instance)
    logger.debug(f"Branch {'created' if created else 'updated'}: {instance.name}")


@receiver(post_delete, sender=Branch)
def invalidate_branch_on_delete(sender, instance, **kwargs):
    """Invalidate branch cache when a branch is deleted"""
    invalidate_branch_cache(instance)
