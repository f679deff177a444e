import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

STARS = [django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(5)]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('projects', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Review',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('rating', models.PositiveSmallIntegerField(validators=STARS)),
                ('comment', models.TextField(blank=True, default='')),
                ('quality', models.PositiveSmallIntegerField(blank=True, null=True, validators=STARS)),
                ('deadline', models.PositiveSmallIntegerField(blank=True, null=True, validators=STARS)),
                ('communication', models.PositiveSmallIntegerField(blank=True, null=True, validators=STARS)),
                ('price', models.PositiveSmallIntegerField(blank=True, null=True, validators=STARS)),
                ('reply', models.TextField(blank=True, default='')),
                ('replied_at', models.DateTimeField(blank=True, null=True)),
                ('is_verified', models.BooleanField(default=False)),
                ('verified_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('project', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='reviews', to='projects.project')),
                ('reviewee', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='reviews_received', to=settings.AUTH_USER_MODEL)),
                ('reviewer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='reviews_written', to=settings.AUTH_USER_MODEL)),
                ('verified_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'constraints': [
                    models.UniqueConstraint(fields=('project', 'reviewer'), name='unique_review_per_project_reviewer'),
                ],
                'indexes': [
                    models.Index(fields=['reviewee', 'is_verified'], name='review_reviewee_verified_idx'),
                ],
            },
        ),
    ]
