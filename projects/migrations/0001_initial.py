import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

PERMISSION_CHOICES = [(0, "Read"), (1, "Write"), (2, "Admin")]
PERMISSION_RANGE = models.Q(("permission__gte", 0), ("permission__lte", 2))


def timestamps():
    return [
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
    ]


def pk():
    return ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID"))


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Project",
            fields=[
                pk(),
                *timestamps(),
                ("title", models.CharField(max_length=250)),
                ("description", models.TextField(blank=True, default="")),
                ("identifier", models.CharField(blank=True, default="", max_length=10)),
                ("hex_color", models.CharField(blank=True, default="", max_length=6)),
                ("hash", models.CharField(editable=False, max_length=40, unique=True)),
                ("is_archived", models.BooleanField(default=False)),
                ("position", models.FloatField(default=0)),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="owned_projects",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "parent",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="children",
                        to="projects.project",
                    ),
                ),
            ],
            options={
                "ordering": ("-created_at",),
                "abstract": False,
                "indexes": [
                    models.Index(fields=["owner"], name="project_owner_idx"),
                    models.Index(fields=["parent"], name="project_parent_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("parent", models.F("id")), _negated=True),
                        name="project_not_own_parent",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Team",
            fields=[
                pk(),
                *timestamps(),
                ("name", models.CharField(max_length=250)),
                ("description", models.TextField(blank=True, default="")),
                (
                    "created_by",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_teams",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={"ordering": ("-created_at",), "abstract": False},
        ),
        migrations.CreateModel(
            name="ProjectUser",
            fields=[
                pk(),
                *timestamps(),
                ("permission", models.SmallIntegerField(choices=PERMISSION_CHOICES, default=0)),
                (
                    "project",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="user_grants",
                        to="projects.project",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="project_grants",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ("-created_at",),
                "abstract": False,
                "db_table": "users_projects",
                "indexes": [models.Index(fields=["user", "project"], name="project_user_lookup_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("project", "user"), name="uniq_project_user_grant"),
                    models.CheckConstraint(condition=PERMISSION_RANGE, name="project_user_permission_range"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TeamMember",
            fields=[
                pk(),
                *timestamps(),
                ("admin", models.BooleanField(default=False)),
                (
                    "team",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="members",
                        to="projects.team",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="team_memberships",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ("-created_at",),
                "abstract": False,
                "db_table": "team_members",
                "indexes": [models.Index(fields=["user", "team"], name="team_member_lookup_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("team", "user"), name="uniq_team_member"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TeamProject",
            fields=[
                pk(),
                *timestamps(),
                ("permission", models.SmallIntegerField(choices=PERMISSION_CHOICES, default=0)),
                (
                    "project",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="team_grants",
                        to="projects.project",
                    ),
                ),
                (
                    "team",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="project_grants",
                        to="projects.team",
                    ),
                ),
            ],
            options={
                "ordering": ("-created_at",),
                "abstract": False,
                "db_table": "team_projects",
                "constraints": [
                    models.UniqueConstraint(fields=("project", "team"), name="uniq_team_project_grant"),
                    models.CheckConstraint(condition=PERMISSION_RANGE, name="team_project_permission_range"),
                ],
            },
        ),
        migrations.CreateModel(
            name="LinkSharing",
            fields=[
                pk(),
                *timestamps(),
                ("hash", models.CharField(editable=False, max_length=40, unique=True)),
                ("name", models.CharField(blank=True, default="", max_length=250)),
                ("permission", models.SmallIntegerField(choices=PERMISSION_CHOICES, default=0)),
                (
                    "sharing_type",
                    models.SmallIntegerField(
                        choices=[(0, "Unknown"), (1, "Without password"), (2, "With password")],
                        default=1,
                    ),
                ),
                ("password", models.CharField(blank=True, default="", max_length=128)),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
                (
                    "project",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="link_shares",
                        to="projects.project",
                    ),
                ),
                (
                    "shared_by",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="link_shares",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ("-created_at",),
                "abstract": False,
                "db_table": "link_shares",
                "constraints": [
                    models.CheckConstraint(condition=PERMISSION_RANGE, name="link_share_permission_range"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SavedFilter",
            fields=[
                pk(),
                *timestamps(),
                ("title", models.CharField(max_length=250)),
                ("description", models.TextField(blank=True, default="")),
                ("filters", models.JSONField(blank=True, default=dict)),
                ("is_favorite", models.BooleanField(default=False)),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="saved_filters",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={"ordering": ("-created_at",), "abstract": False},
        ),
        migrations.CreateModel(
            name="Label",
            fields=[
                pk(),
                *timestamps(),
                ("title", models.CharField(max_length=250)),
                ("description", models.TextField(blank=True, default="")),
                ("hex_color", models.CharField(blank=True, default="", max_length=6)),
                (
                    "created_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="labels",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={"ordering": ("-created_at",), "abstract": False},
        ),
        migrations.CreateModel(
            name="Task",
            fields=[
                pk(),
                *timestamps(),
                ("title", models.CharField(max_length=250)),
                ("description", models.TextField(blank=True, default="")),
                ("done", models.BooleanField(default=False)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_tasks",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "project",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tasks",
                        to="projects.project",
                    ),
                ),
            ],
            options={
                "ordering": ("-created_at",),
                "abstract": False,
                "indexes": [models.Index(fields=["project", "done"], name="task_project_done_idx")],
            },
        ),
        migrations.CreateModel(
            name="LabelTask",
            fields=[
                pk(),
                *timestamps(),
                (
                    "label",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="task_links",
                        to="projects.label",
                    ),
                ),
                (
                    "task",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="label_links",
                        to="projects.task",
                    ),
                ),
            ],
            options={
                "ordering": ("-created_at",),
                "abstract": False,
                "db_table": "label_tasks",
                "constraints": [
                    models.UniqueConstraint(fields=("label", "task"), name="uniq_label_task"),
                ],
            },
        ),
        migrations.AddField(
            model_name="task",
            name="labels",
            field=models.ManyToManyField(
                blank=True,
                related_name="tasks",
                through="projects.LabelTask",
                to="projects.label",
            ),
        ),
        migrations.CreateModel(
            name="TaskComment",
            fields=[
                pk(),
                *timestamps(),
                ("comment", models.TextField()),
                (
                    "author",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="task_comments",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "link_share",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="comments",
                        to="projects.linksharing",
                    ),
                ),
                (
                    "task",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="comments",
                        to="projects.task",
                    ),
                ),
            ],
            options={
                "ordering": ("created_at",),
                "abstract": False,
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("author__isnull", False), ("link_share__isnull", False), _negated=True),
                        name="comment_single_author",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Reaction",
            fields=[
                pk(),
                *timestamps(),
                ("kind", models.CharField(choices=[("task", "Task"), ("comment", "Comment")], max_length=10)),
                ("entity_id", models.PositiveBigIntegerField()),
                ("value", models.CharField(max_length=20)),
                (
                    "link_share",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="reactions",
                        to="projects.linksharing",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="reactions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ("-created_at",),
                "abstract": False,
                "indexes": [models.Index(fields=["kind", "entity_id"], name="reaction_target_idx")],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("user__isnull", False)),
                        fields=("user", "kind", "entity_id", "value"),
                        name="uniq_user_reaction",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("link_share__isnull", False)),
                        fields=("link_share", "kind", "entity_id", "value"),
                        name="uniq_share_reaction",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Webhook",
            fields=[
                pk(),
                *timestamps(),
                ("target_url", models.URLField(max_length=500)),
                ("events", models.JSONField(default=list)),
                ("secret", models.CharField(blank=True, default="", max_length=128)),
                (
                    "created_by",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="webhooks",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "project",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="webhooks",
                        to="projects.project",
                    ),
                ),
            ],
            options={"ordering": ("-created_at",), "abstract": False},
        ),
    ]
