from django.contrib import admin

from .models import Quote, QuoteActivity


class QuoteActivityInline(admin.TabularInline):
    model = QuoteActivity
    extra = 0
    can_delete = False
    readonly_fields = ("created_at", "category", "tone", "actor", "text")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Quote)
class QuoteAdmin(admin.ModelAdmin):
    list_display = ("reference", "client_name", "status", "target_currency", "total_sell_base", "margin_percent", "requires_approval", "updated_at")
    search_fields = ("reference", "client_name")
    list_filter = ("status", "requires_approval", "target_currency", "updated_at")
    date_hierarchy = "updated_at"
    inlines = [QuoteActivityInline]

    def get_readonly_fields(self, request, obj=None):
        # Pricing is owned by the aggregate; edits go through the API
        return [f.name for f in self.model._meta.fields]


@admin.register(QuoteActivity)
class QuoteActivityAdmin(admin.ModelAdmin):
    list_display = ("quote", "category", "tone", "actor", "text", "created_at")
    list_filter = ("category", "tone")
    search_fields = ("quote__reference", "text", "actor")
