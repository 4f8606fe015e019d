"""Click parameter types for the cliptrack CLI."""
import click

from cliptrack.config_loader import parse_duration


class DurationParamType(click.ParamType):
    """Click parameter accepting seconds or durations such as 500ms, 10s, 1m30s."""

    name = "duration"

    def convert(self, value, param, ctx):
        """Convert the raw option value to seconds as a float."""
        if isinstance(value, float):
            return value
        try:
            return parse_duration(value)
        except ValueError:
            self.fail(f"{value!r} is not a valid duration (e.g. 500ms, 10s, 1m30s)", param, ctx)


DURATION = DurationParamType()
