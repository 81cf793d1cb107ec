"""
Database models for the MediPortal backend.

Three tables are shared between every connected portal client:
``profiles`` (staff), ``rooms`` (per-sector allocation slot containers)
and ``room_allocations`` (one doctor in one room for one shift of one
day).  Table names are pinned with ``db_table`` because clients address
them by name in change notifications and store gateways.
"""
from __future__ import annotations

import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models

from .constants import (
    GENDER_CHOICES,
    GENDER_MALE,
    ROLE_CHOICES,
    ROLE_RECEPTION,
    SECTOR_CHOICES,
    SHIFT_CHOICES,
    STATUS_CHOICES,
)


def _new_id() -> str:
    return str(uuid.uuid4())


class Profile(AbstractUser):
    """A staff member (doctor or reception).

    Profiles are also the authentication identities of the project, so
    removing a profile ends that person's ability to sign in.  Staff
    added by an administrator without a login get their id as username
    and an unusable password.

    ``specialty`` is the role-display field: for doctors it holds
    ``"<specialty> | <sector>"``, for reception the sector/role label.
    """
    id = models.CharField(max_length=64, primary_key=True, default=_new_id, editable=False)
    name = models.CharField(max_length=255, blank=True)
    role = models.CharField(max_length=16, choices=ROLE_CHOICES, default=ROLE_RECEPTION, db_index=True)
    specialty = models.CharField(max_length=512, blank=True)
    phone = models.CharField(max_length=32, blank=True)
    avatar = models.URLField(max_length=512, blank=True)
    # Left empty until set; readers apply a context dependent default.
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, blank=True, null=True)
    gender = models.CharField(max_length=8, choices=GENDER_CHOICES, default=GENDER_MALE)
    is_admin = models.BooleanField(default=False)

    class Meta:
        db_table = 'profiles'

    def save(self, *args, **kwargs):
        if not self.username:
            self.username = self.id
            if not self.password:
                self.set_unusable_password()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.name or self.username} ({self.role})"


class Room(models.Model):
    """A physical room inside one sector.

    ``order`` drives the display order of the daily map; it does not
    need to be contiguous and ties fall back to insertion order.
    """
    id = models.CharField(max_length=64, primary_key=True, default=_new_id, editable=False)
    name = models.CharField(max_length=255)
    extension = models.CharField(max_length=32, blank=True)
    sector = models.CharField(max_length=128, choices=SECTOR_CHOICES, db_index=True)
    order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'rooms'
        ordering = ['order', 'created_at']

    def __str__(self) -> str:
        return f"{self.name} ({self.sector})"


class RoomAllocation(models.Model):
    """One doctor assigned to one room for a shift of a calendar day.

    At most one row exists per (room, date, shift); writers upsert on
    that triple so the latest write wins.
    """
    id = models.BigAutoField(primary_key=True)
    room = models.ForeignKey(Room, on_delete=models.CASCADE, related_name='allocations')
    doctor = models.ForeignKey(Profile, on_delete=models.CASCADE, related_name='allocations')
    date = models.DateField(db_index=True)
    shift = models.CharField(max_length=16, choices=SHIFT_CHOICES)
    created_by = models.ForeignKey(
        Profile, null=True, blank=True, on_delete=models.SET_NULL, related_name='allocations_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'room_allocations'
        constraints = [
            models.UniqueConstraint(fields=['room', 'date', 'shift'], name='uniq_room_date_shift'),
        ]
        indexes = [
            models.Index(fields=['date', 'room'], name='room_alloc_date_room_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.room_id} {self.date:%F} {self.shift} -> {self.doctor_id}"
