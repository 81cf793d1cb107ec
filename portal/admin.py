"""
Django admin registrations for the portal models.

Superusers can inspect and fix profiles, rooms and allocations at
``/admin/``; edits made here broadcast changes like any other write.
"""

from django.contrib import admin

from .models import Profile, Room, RoomAllocation


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ('name', 'role', 'specialty', 'status', 'is_admin')
    list_filter = ('role', 'status', 'is_admin')
    search_fields = ('id', 'name', 'email', 'specialty')


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ('name', 'extension', 'sector', 'order')
    list_filter = ('sector',)
    search_fields = ('name', 'extension')


@admin.register(RoomAllocation)
class RoomAllocationAdmin(admin.ModelAdmin):
    list_display = ('date', 'shift', 'room', 'doctor', 'created_by')
    list_filter = ('shift', 'room__sector', 'date')
    search_fields = ('room__name', 'doctor__name')
