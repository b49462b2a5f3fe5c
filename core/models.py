from datetime import timedelta

from django.contrib.auth.models import User
from django.db import models
from django.utils import timezone


COMPOSITE_WEIGHTS = {
    'codeforces': 2,
    'codechef': 1.5,
    'leetcode': 1,
}


def compute_composite_score(codeforces, codechef, leetcode):
    return (
        (codeforces or 0) * COMPOSITE_WEIGHTS['codeforces']
        + (codechef or 0) * COMPOSITE_WEIGHTS['codechef']
        + (leetcode or 0) * COMPOSITE_WEIGHTS['leetcode']
    )


def format_duration(seconds):
    seconds = int(seconds or 0)
    days, rest = divmod(seconds, 24 * 3600)
    hours, rest = divmod(rest, 3600)
    minutes = rest // 60
    if days > 0:
        return f"{days}d {hours}h"
    return f"{hours}h {minutes}m"


class Profile(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='profile')

    # Handles
    handle_codeforces = models.CharField(max_length=100, blank=True, null=True)
    handle_codechef = models.CharField(max_length=100, blank=True, null=True)
    handle_leetcode = models.CharField(max_length=100, blank=True, null=True)

    # Updated by the rating sync job; 0 means no confirmed rating yet
    rating_codeforces = models.IntegerField(default=0)
    rating_codechef = models.IntegerField(default=0)
    rating_leetcode = models.IntegerField(default=0)
    composite_score = models.FloatField(default=0)
    ratings_updated_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['-rating_codeforces'], name='profile_rating_cf_idx'),
            models.Index(fields=['-rating_codechef'], name='profile_rating_cc_idx'),
            models.Index(fields=['-rating_leetcode'], name='profile_rating_lc_idx'),
            models.Index(fields=['-composite_score'], name='profile_composite_idx'),
        ]
        verbose_name = "Profile"
        verbose_name_plural = "Profiles"

    def __str__(self):
        return f"{self.user.username} ({self.composite_score:g})"

    @classmethod
    def with_handles(cls):
        has_handle = (
            (models.Q(handle_codeforces__isnull=False) & ~models.Q(handle_codeforces=''))
            | (models.Q(handle_codechef__isnull=False) & ~models.Q(handle_codechef=''))
            | (models.Q(handle_leetcode__isnull=False) & ~models.Q(handle_leetcode=''))
        )
        return cls.objects.select_related('user').filter(has_handle).order_by('id')


class Contest(models.Model):
    STATUS_UPCOMING = 'upcoming'
    STATUS_PAST = 'past'
    STATUS_CHOICES = [
        (STATUS_UPCOMING, 'Upcoming'),
        (STATUS_PAST, 'Past'),
    ]

    contest_id = models.CharField(max_length=200, unique=True)
    name = models.CharField(max_length=300)
    platform = models.CharField(max_length=50)
    start_time = models.DateTimeField()
    duration_seconds = models.PositiveIntegerField(default=7200)
    link = models.URLField(max_length=500)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_UPCOMING)
    # [{videoId, title, url, thumbnail}], at most 3
    solutions = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['start_time']
        indexes = [
            models.Index(fields=['status', '-start_time'], name='contest_status_start_idx'),
            models.Index(fields=['platform', 'status'], name='contest_platform_status_idx'),
        ]
        verbose_name = "Contest"
        verbose_name_plural = "Contests"

    def __str__(self):
        return f"{self.platform} - {self.name} ({self.status})"

    @property
    def end_time(self):
        return self.start_time + timedelta(seconds=self.duration_seconds or 0)

    @property
    def duration_display(self):
        return format_duration(self.duration_seconds)

    @property
    def is_past(self):
        return self.status == self.STATUS_PAST

    def has_ended(self, now=None):
        now = now or timezone.now()
        return now > self.end_time


class UserActivity(models.Model):
    profile = models.ForeignKey(Profile, on_delete=models.CASCADE, related_name='activity')
    date = models.DateField()
    # Accepted problems that day across platforms, deduplicated by (platform, problem)
    count = models.PositiveIntegerField(default=0)
    breakdown = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-date']
        constraints = [
            models.UniqueConstraint(
                fields=['profile', 'date'],
                name='user_activity_profile_date_unique',
            ),
        ]
        verbose_name = "User Activity"
        verbose_name_plural = "User Activity"

    def __str__(self):
        return f"{self.profile.user.username} - {self.date}: {self.count}"
