from django.contrib import admin

from modules.products.models import Product, ProductVariant


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 0


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("sku", "name", "price", "stock_quantity", "status")
    list_filter = ("status",)
    search_fields = ("sku", "name")
    inlines = [ProductVariantInline]
