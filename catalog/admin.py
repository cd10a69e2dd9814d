from django.contrib import admin

from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "price", "stock", "category", "status", "created_at")
    search_fields = ("name", "category")
    list_filter = ("status", "category")
    ordering = ("-created_at",)
