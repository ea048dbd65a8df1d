from django.core.management.base import BaseCommand, CommandError

from pricing.services.pricing_rules import PricingRulesError, load_pricing_rules, validate_pricing_rules


class Command(BaseCommand):
    help = "Validates the pricing rules configuration (base price tables, delivery days, urgent fees)."

    def add_arguments(self, parser):
        parser.add_argument("--path", type=str, default=None, help="Rules file to check instead of the bundled one")

    def handle(self, *args, **options):
        path = options.get("path")
        self.stdout.write(f"Validating pricing rules{f' at {path}' if path else ''}...")
        try:
            rules = load_pricing_rules(path)
        except PricingRulesError as e:
            raise CommandError(str(e)) from e

        errors = validate_pricing_rules(rules)
        if errors:
            for error in errors:
                self.stdout.write(self.style.WARNING(f"  - {error}"))
            raise CommandError(f"Found {len(errors)} problem(s) in the pricing rules.")

        layers = ", ".join(str(n) for n in rules["supported_layers"])
        self.stdout.write(self.style.SUCCESS(
            f"Pricing rules v{rules['version']} look good ({len(rules['supported_layers'])} layer counts: {layers})."
        ))
