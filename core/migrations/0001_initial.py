import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Contest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('contest_id', models.CharField(max_length=200, unique=True)),
                ('name', models.CharField(max_length=300)),
                ('platform', models.CharField(max_length=50)),
                ('start_time', models.DateTimeField()),
                ('duration_seconds', models.PositiveIntegerField(default=7200)),
                ('link', models.URLField(max_length=500)),
                ('status', models.CharField(choices=[('upcoming', 'Upcoming'), ('past', 'Past')], default='upcoming', max_length=10)),
                ('solutions', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Contest',
                'verbose_name_plural': 'Contests',
                'ordering': ['start_time'],
                'indexes': [
                    models.Index(fields=['status', '-start_time'], name='contest_status_start_idx'),
                    models.Index(fields=['platform', 'status'], name='contest_platform_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Profile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('handle_codeforces', models.CharField(blank=True, max_length=100, null=True)),
                ('handle_codechef', models.CharField(blank=True, max_length=100, null=True)),
                ('handle_leetcode', models.CharField(blank=True, max_length=100, null=True)),
                ('rating_codeforces', models.IntegerField(default=0)),
                ('rating_codechef', models.IntegerField(default=0)),
                ('rating_leetcode', models.IntegerField(default=0)),
                ('composite_score', models.FloatField(default=0)),
                ('ratings_updated_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Profile',
                'verbose_name_plural': 'Profiles',
                'indexes': [
                    models.Index(fields=['-rating_codeforces'], name='profile_rating_cf_idx'),
                    models.Index(fields=['-rating_codechef'], name='profile_rating_cc_idx'),
                    models.Index(fields=['-rating_leetcode'], name='profile_rating_lc_idx'),
                    models.Index(fields=['-composite_score'], name='profile_composite_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='UserActivity',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField()),
                ('count', models.PositiveIntegerField(default=0)),
                ('breakdown', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('profile', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='activity', to='core.profile')),
            ],
            options={
                'verbose_name': 'User Activity',
                'verbose_name_plural': 'User Activity',
                'ordering': ['-date'],
                'constraints': [
                    models.UniqueConstraint(fields=('profile', 'date'), name='user_activity_profile_date_unique'),
                ],
            },
        ),
    ]
