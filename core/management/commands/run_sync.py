from datetime import date

from django.core.management.base import BaseCommand, CommandError

from core.tasks import JOBS


class Command(BaseCommand):
    help = "Runs one or all background sync jobs in this process."

    def add_arguments(self, parser):
        parser.add_argument(
            "job",
            choices=sorted(JOBS) + ["all"],
            help="Job to run.",
        )
        parser.add_argument(
            "--date",
            help="Day to aggregate for the activity job (YYYY-MM-DD). Defaults to yesterday.",
        )

    def handle(self, *args, **options):
        job_name = options["job"]
        day = None
        if options.get("date"):
            try:
                day = date.fromisoformat(options["date"])
            except ValueError as exc:
                raise CommandError(f"Invalid --date: {options['date']}") from exc

        names = sorted(JOBS) if job_name == "all" else [job_name]
        failed = False
        for name in names:
            kwargs = {"day": day} if name == "activity" and day else {}
            summary = JOBS[name].run("manual", **kwargs)
            style = self.style.SUCCESS
            if summary.get("status") == "skipped":
                style = self.style.WARNING
            elif summary.get("status") == "error":
                style = self.style.ERROR
                failed = True
            self.stdout.write(style(f"{name}: {summary}"))

        if failed:
            raise CommandError("At least one sync job failed.")
