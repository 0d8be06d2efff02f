from django.contrib import admin

from modules.addresses.models import Address


@admin.register(Address)
class AddressAdmin(admin.ModelAdmin):
    list_display = ("user_id", "first_name", "last_name", "city", "country", "type")
    search_fields = ("user_id", "last_name", "postal_code")
