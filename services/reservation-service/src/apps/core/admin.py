from django.contrib import admin
from .models import AccessLog, AccessNameRule, Consultorio, MemberProfile, Reservation


@admin.register(Consultorio)
class ConsultorioAdmin(admin.ModelAdmin):
    list_display = ['name', 'hourly_rate', 'is_active']
    list_filter = ['is_active']


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = ['id', 'consultorio', 'owner_id', 'start_time', 'end_time', 'kind', 'status']
    list_filter = ['status', 'kind', 'consultorio', 'uses_shared_accessory']
    search_fields = ['owner_id', 'recurrence_id', 'title']
    date_hierarchy = 'start_time'


@admin.register(MemberProfile)
class MemberProfileAdmin(admin.ModelAdmin):
    list_display = ['user_id', 'first_name', 'last_name', 'role', 'billing_mode', 'access_system_name']
    list_filter = ['role', 'billing_mode']
    search_fields = ['first_name', 'last_name', 'access_system_name', 'email']


@admin.register(AccessNameRule)
class AccessNameRuleAdmin(admin.ModelAdmin):
    list_display = ['access_name', 'action', 'created_at']


@admin.register(AccessLog)
class AccessLogAdmin(admin.ModelAdmin):
    list_display = ['access_time', 'access_name', 'status', 'user_id', 'reservation_id']
    list_filter = ['status']
