from django.contrib import admin, messages

from .models import Contest, Profile, UserActivity
from .tasks import update_contests, update_ratings

admin.site.site_header = "cphub administration"
admin.site.site_title = "cphub admin"
admin.site.index_title = "Sync data"


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = (
        "user",
        "handle_codeforces",
        "handle_codechef",
        "handle_leetcode",
        "rating_codeforces",
        "rating_codechef",
        "rating_leetcode",
        "composite_score",
        "ratings_updated_at",
    )
    search_fields = ("user__username", "handle_codeforces", "handle_codechef", "handle_leetcode")
    readonly_fields = ("composite_score", "ratings_updated_at", "created_at", "updated_at")
    actions = ["queue_rating_sync"]

    @admin.action(description="Queue a rating sync run")
    def queue_rating_sync(self, request, queryset):
        update_ratings.delay("admin")
        messages.success(request, "Rating sync queued.")


@admin.register(Contest)
class ContestAdmin(admin.ModelAdmin):
    list_display = ("contest_id", "name", "platform", "start_time", "duration_display", "status")
    list_filter = ("platform", "status")
    search_fields = ("contest_id", "name")
    ordering = ("-start_time",)
    actions = ["queue_contest_sync"]

    @admin.action(description="Queue a contest sync run")
    def queue_contest_sync(self, request, queryset):
        update_contests.delay("admin")
        messages.success(request, "Contest sync queued.")


@admin.register(UserActivity)
class UserActivityAdmin(admin.ModelAdmin):
    list_display = ("profile", "date", "count")
    list_filter = ("date",)
    search_fields = ("profile__user__username",)
    date_hierarchy = "date"
