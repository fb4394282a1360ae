"""Forms for the statistics dashboard."""

from __future__ import annotations

from datetime import date

from django import forms

from stats.query import StatsQuery, default_stats_query


class StatsRangeForm(forms.Form):
    """Validate the date range and indexer population of a stats request."""

    after = forms.DateField(
        required=False,
        widget=forms.DateInput(attrs={"type": "date"}),
        label="After",
    )
    before = forms.DateField(
        required=False,
        widget=forms.DateInput(attrs={"type": "date"}),
        label="Before",
    )
    include_disabled = forms.BooleanField(
        required=False,
        label="Include disabled indexers",
        help_text="Include statistics of indexers that are currently disabled.",
    )

    def __init__(self, *args, **kwargs) -> None:
        """Initialize the form with the default range relative to `today`."""

        today: date | None = kwargs.pop("today", None)
        include_disabled: bool = kwargs.pop("include_disabled", False)
        super().__init__(*args, **kwargs)
        self._defaults = default_stats_query(today=today or date.today(), include_disabled=include_disabled)

    def clean(self) -> dict[str, object]:
        """Apply default bounds when neither bound was submitted."""

        cleaned = super().clean()
        bound_keys = set(self.data.keys())
        if "after" not in bound_keys and "before" not in bound_keys:
            cleaned["after"] = self._defaults.after
            cleaned["before"] = self._defaults.before
        if "include_disabled" not in bound_keys:
            cleaned["include_disabled"] = self._defaults.include_disabled
        after = cleaned.get("after")
        before = cleaned.get("before")
        if isinstance(after, date) and isinstance(before, date) and after > before:
            raise forms.ValidationError("The 'after' date must not be later than the 'before' date.")
        return cleaned

    def query(self) -> StatsQuery:
        """Return the validated StatsQuery.

        Raises:
            ValueError: If the form is invalid.
        """

        if not self.is_valid():
            raise ValueError("StatsRangeForm must be valid before building a StatsQuery.")
        return StatsQuery(
            after=self.cleaned_data.get("after"),
            before=self.cleaned_data.get("before"),
            include_disabled=bool(self.cleaned_data.get("include_disabled")),
        )
