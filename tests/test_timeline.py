"""
Brew Day Timeline Test Suite

Tests for the brew-day instruction generator:
- Phase order and timestamps
- Mash, steep, top-up and boil wording
- Fermentation, dry hopping, bottling and kegging
"""

from dataclasses import replace

import pytest


def _phases(timeline):
    seen = []
    for step in timeline:
        if step.phase not in seen:
            seen.append(step.phase)
    return seen


def _texts(timeline, phase):
    return [s.instructions for s in timeline if s.phase == phase]


def _first(timeline, phase):
    return next(s for s in timeline if s.phase == phase)


class TestTimelineOrdering:
    """Properties that hold for every timeline."""

    @pytest.mark.parametrize("is_si_units", [True, False])
    @pytest.mark.parametrize("is_bottled", [True, False])
    def test_times_never_decrease(self, extract_recipe, mash_steep_recipe, is_si_units, is_bottled):
        from brewday.services.timeline import compute_recipe_timeline

        for recipe in (extract_recipe, mash_steep_recipe):
            timeline = compute_recipe_timeline(recipe, is_si_units, is_bottled)
            times = [s.time for s in timeline]

            assert times == sorted(times)
            assert timeline[-1].phase == "drink"

    def test_durations_fill_the_gaps(self, mash_steep_recipe):
        from brewday.services.timeline import compute_recipe_timeline
        timeline = compute_recipe_timeline(mash_steep_recipe)

        for current, following in zip(timeline, timeline[1:]):
            assert current.duration == following.time - current.time
        assert timeline[-1].duration == 0
        assert sum(s.duration for s in timeline) == timeline[-1].time - timeline[0].time

    def test_phase_order(self, mash_steep_recipe):
        from brewday.services.timeline import compute_recipe_timeline
        timeline = compute_recipe_timeline(mash_steep_recipe)

        assert _phases(timeline) == [
            "mash", "steep", "top-up", "boil", "chill", "yeast", "ferment", "dry hop", "bottle", "aging", "drink",
        ]

    def test_uncalculated_recipe_is_calculated(self, extract_recipe):
        from brewday.services.calculator import calculate_recipe
        from brewday.services.timeline import compute_recipe_timeline

        assert compute_recipe_timeline(extract_recipe) == compute_recipe_timeline(calculate_recipe(extract_recipe))


class TestExtractBrewDay:
    """The simple extract recipe, step by step."""

    def test_bottled_timeline(self, extract_recipe):
        from brewday.services.timeline import compute_recipe_timeline
        timeline = compute_recipe_timeline(extract_recipe)

        assert [s.phase for s in timeline] == ["top-up", "boil", "chill", "yeast", "bottle", "aging", "drink"]
        assert [s.time for s in timeline] == [0, 22, 82, 102, 20262, 20262, 40422]
        assert [s.duration for s in timeline] == [22, 60, 20, 20160, 0, 20160, 0]

    def test_instruction_text(self, extract_recipe):
        from brewday.services.timeline import compute_recipe_timeline
        timeline = compute_recipe_timeline(extract_recipe)

        assert timeline[0].instructions == "Bring 10.0l of water to a rolling boil (about 22 minutes)."
        assert timeline[1].instructions == "Add 4.00kg of Extra pale extract (57.9 GU), 28.3g of Cascade (9.4 IBU)."
        assert timeline[3].instructions.startswith("Pitch Safale US-05 and seal the fermenter.")
        assert timeline[4].instructions == "Prime with 0.14kg of corn sugar and bottle about 56 bottles."
        assert timeline[5].instructions == "Age at 20°C for 2 weeks."
        assert timeline[6].instructions == "Relax, don't worry and have a homebrew!"

    def test_imperial_units(self, extract_recipe):
        from brewday.services.timeline import compute_recipe_timeline
        timeline = compute_recipe_timeline(extract_recipe, is_si_units=False)

        assert timeline[0].instructions.startswith("Bring 2.6gal of water")
        assert timeline[1].instructions == "Add 8lb 13.1oz of Extra pale extract (57.9 GU), 1.0oz of Cascade (9.4 IBU)."
        assert "68°F" in _first(timeline, "chill").instructions
        assert all("kg" not in s.instructions for s in timeline)

    def test_units_do_not_change_times(self, extract_recipe):
        from brewday.services.timeline import compute_recipe_timeline
        si = compute_recipe_timeline(extract_recipe, is_si_units=True)
        imperial = compute_recipe_timeline(extract_recipe, is_si_units=False)

        assert [s.time for s in si] == [s.time for s in imperial]

    def test_weaker_burner_takes_longer(self, extract_recipe):
        from brewday.core.constants import DEFAULT_CONSTANTS
        from brewday.services.timeline import compute_recipe_timeline
        constants = replace(DEFAULT_CONSTANTS, burner_energy=4500.0)

        timeline = compute_recipe_timeline(extract_recipe, constants=constants)

        assert timeline[0].instructions == "Bring 10.0l of water to a rolling boil (about 43 minutes)."
        assert timeline[1].time == 43

    @pytest.mark.parametrize("batch_size, expected", [
        (5.0, "Prime with 0.03kg of corn sugar and bottle about 14 bottles."),
        (80.0, "Prime with 0.55kg of corn sugar and bottle about 225 bottles."),
    ])
    def test_priming_follows_batch_size(self, extract_recipe, batch_size, expected):
        from brewday.services.timeline import compute_recipe_timeline
        timeline = compute_recipe_timeline(replace(extract_recipe, batch_size=batch_size))

        assert _first(timeline, "bottle").instructions == expected


class TestBoilPhase:
    """Tests for boil addition ordering."""

    def test_late_fermentables_at_five_minutes(self, extract_recipe):
        from brewday.services.fermentable import Fermentable, FermentableType
        from brewday.services.timeline import compute_recipe_timeline
        honey = Fermentable(name="Honey", type=FermentableType.SUGAR, weight=0.5, yield_=75.0, late=True)
        recipe = replace(extract_recipe, fermentables=extract_recipe.fermentables + (honey,))

        timeline = compute_recipe_timeline(recipe)
        boil = [s for s in timeline if s.phase == "boil"]

        assert [s.time for s in boil] == [22, 77]
        assert "Honey" not in boil[0].instructions
        assert boil[1].instructions.startswith("Add 0.50kg of Honey")
        assert _first(timeline, "chill").time == 82

    def test_longest_addition_first(self, extract_recipe):
        from brewday.services.spice import Spice
        from brewday.services.timeline import compute_recipe_timeline
        spices = (Spice(name="Saaz", weight=0.02, aa=3.5, time=15), Spice(name="Cascade", weight=0.0283, aa=4.5, time=60),
                  Spice(name="Coriander", weight=0.01, time=5))
        timeline = compute_recipe_timeline(replace(extract_recipe, spices=spices))
        boil = [s for s in timeline if s.phase == "boil"]

        assert [s.time for s in boil] == [22, 67, 77]
        assert "Cascade" in boil[0].instructions and "Extra pale extract" in boil[0].instructions
        assert "Saaz" in boil[1].instructions
        # No alpha acid, no IBU note
        assert boil[2].instructions == "Add 10.0g of Coriander."

    def test_fermentables_without_hops_boil_for_an_hour(self, extract_recipe):
        from brewday.services.timeline import compute_recipe_timeline
        timeline = compute_recipe_timeline(replace(extract_recipe, spices=()))

        assert _texts(timeline, "boil") == ["Add 4.00kg of Extra pale extract (57.9 GU)."]
        assert _first(timeline, "chill").time == 22 + 60


class TestMashAndSteep:
    """Tests for the mash and steep phases."""

    def test_mash_instructions(self, mash_steep_recipe):
        from brewday.services.timeline import compute_recipe_timeline
        mash = _texts(compute_recipe_timeline(mash_steep_recipe), "mash")

        assert mash[0].startswith("Begin the mash. Add 4.00kg of Pale malt")
        assert mash[1] == "Heat 12.4l of water to 75°C and add it to the mash (about 18 minutes)."
        assert mash[2] == "Saccharification: Allow your mash to rest at 68°C for 60 minutes."
        assert mash[3] == "Remove grains from mash and drain the wort into your kettle."
        assert mash[4] == "Sparge the grains with 4.0l of water at 76°C (about 20 minutes)."

    def test_no_sparge_when_mash_fills_kettle(self, mash_steep_recipe):
        from brewday.services.timeline import compute_recipe_timeline
        timeline = compute_recipe_timeline(replace(mash_steep_recipe, boil_size=10.0))

        assert not any("Sparge" in text for text in _texts(timeline, "mash"))
        assert _first(timeline, "top-up").instructions.startswith("Heat the wort to a rolling boil")

    def test_steep_instructions(self, mash_steep_recipe):
        from brewday.services.timeline import compute_recipe_timeline
        steep = _texts(compute_recipe_timeline(mash_steep_recipe), "steep")

        # 0.5kg at 2.75 l/kg is under the 2l minimum, so the ratio widens to 4 l/kg
        assert steep[0].startswith("Heat 2.0l of water to 68°C")
        assert steep[1] == "Add 0.50kg of Crystal 60 (3.6 GU) to grain socks and steep for 20 minutes."
        assert steep[2] == "Remove the grain socks and let them drain into the kettle."

    def test_small_steep_is_capped_at_max_ratio(self, mash_steep_recipe):
        from brewday.services.timeline import compute_recipe_timeline
        pale, crystal = mash_steep_recipe.fermentables
        recipe = replace(mash_steep_recipe, fermentables=(pale, replace(crystal, weight=0.25)))

        steep = _texts(compute_recipe_timeline(recipe), "steep")

        # 0.25kg at 4 l/kg stays under the 2l minimum
        assert steep[0].startswith("Heat 1.0l of water to 68°C")
        assert steep[1].startswith("Add 0.25kg of Crystal 60")

    def test_top_up_after_mash(self, mash_steep_recipe):
        from brewday.services.timeline import compute_recipe_timeline
        top_up = _first(compute_recipe_timeline(mash_steep_recipe), "top-up")

        assert top_up.instructions.startswith("Top up the wort with 6.6l of water to 25.0l")

    def test_multi_step_mash(self, mash_steep_recipe):
        from brewday.services.mash import Mash, MashStep, MashStepType
        from brewday.services.timeline import compute_recipe_timeline
        mash = Mash(name="Step", steps=(
            MashStep(name="Protein Rest", temp=50, time=20, water_ratio=2.0),
            MashStep(name="Saccharification", temp=66, time=60, water_ratio=3.0),
            MashStep(name="Mash Out", type=MashStepType.TEMPERATURE, temp=76, time=10, water_ratio=3.0),
        ))
        timeline = compute_recipe_timeline(replace(mash_steep_recipe, mash=mash))
        texts = _texts(timeline, "mash")

        assert texts[0].startswith("Begin Step mash.")
        assert any(t.startswith("Protein Rest: Allow your mash to rest at 50°C") for t in texts)
        assert any(t.startswith("Saccharification: Add about 13.5l of boiling water") for t in texts)
        assert any(t.startswith("Heat the mash to 76°C") for t in texts)
        assert any(t.startswith("Mash Out: Adjust your mash temperature to 76°C") for t in texts)


class TestFermentation:
    """Tests for the fermentation and packaging phases."""

    def test_secondary_starts_after_primary(self, mash_steep_recipe):
        from brewday.services.timeline import compute_recipe_timeline
        timeline = compute_recipe_timeline(mash_steep_recipe)
        pitch = _first(timeline, "yeast")
        secondary = _first(timeline, "ferment")

        assert secondary.instructions == "Move to secondary fermenter for 1 week."
        assert secondary.time == pitch.time + 14 * 1440

    def test_fermentation_and_aging_length(self, mash_steep_recipe):
        from brewday.services.timeline import compute_recipe_timeline
        recipe = replace(mash_steep_recipe, spices=mash_steep_recipe.spices[:1], tertiary_days=3)
        timeline = compute_recipe_timeline(recipe)

        assert timeline[-1].time - _first(timeline, "yeast").time == (14 + 7 + 3 + 14) * 1440

    def test_tertiary(self, extract_recipe):
        from brewday.services.timeline import compute_recipe_timeline
        timeline = compute_recipe_timeline(replace(extract_recipe, secondary_days=7, tertiary_days=10))

        assert _texts(timeline, "ferment") == [
            "Move to secondary fermenter for 1 week.",
            "Move to tertiary fermenter for 1 week 3 days.",
        ]

    def test_no_yeast_still_pitches(self, extract_recipe):
        from brewday.services.timeline import compute_recipe_timeline
        timeline = compute_recipe_timeline(replace(extract_recipe, yeast=()))

        assert _first(timeline, "yeast").instructions.startswith("Pitch yeast and seal the fermenter.")

    def test_missing_primary_uses_default(self, extract_recipe):
        from brewday.services.timeline import compute_recipe_timeline
        timeline = compute_recipe_timeline(replace(extract_recipe, primary_days=0))
        note = _first(timeline, "ferment")

        assert "2 weeks" in note.instructions
        assert note.time == _first(timeline, "yeast").time
        assert _first(timeline, "bottle").time == note.time + 14 * 1440

    def test_dry_hop_before_packaging(self, mash_steep_recipe):
        from brewday.services.timeline import compute_recipe_timeline
        timeline = compute_recipe_timeline(mash_steep_recipe)
        dry_hop = _first(timeline, "dry hop")

        assert dry_hop.instructions == "Dry Hop 50.0g of Citra for 3 days."
        assert dry_hop.time == _first(timeline, "yeast").time + (14 + 7) * 1440
        assert _first(timeline, "bottle").time == dry_hop.time + 3 * 1440

    def test_dry_hops_longest_first(self, extract_recipe):
        from brewday.services.spice import Spice
        from brewday.services.timeline import compute_recipe_timeline
        spices = extract_recipe.spices + (
            Spice(name="Mosaic", weight=0.03, aa=12, time=3, use="primary"),
            Spice(name="Galaxy", weight=0.03, aa=14, time=7, use="secondary"),
        )
        timeline = compute_recipe_timeline(replace(extract_recipe, spices=spices))
        dry_hops = [s for s in timeline if s.phase == "dry hop"]
        start = _first(timeline, "yeast").time + 14 * 1440

        assert [s.instructions for s in dry_hops] == [
            "Dry Hop 30.0g of Galaxy for 1 week.",
            "Dry Hop 30.0g of Mosaic for 3 days.",
        ]
        assert [s.time for s in dry_hops] == [start, start + 4 * 1440]
        assert _first(timeline, "bottle").time == start + 7 * 1440


class TestKegging:
    """Tests for the keg packaging path."""

    def test_keg_replaces_bottling(self, extract_recipe):
        from brewday.services.timeline import compute_recipe_timeline
        bottled = compute_recipe_timeline(extract_recipe, is_bottled=True)
        kegged = compute_recipe_timeline(extract_recipe, is_bottled=False)

        assert kegged[:4] == bottled[:4]
        assert "bottle" not in _phases(kegged) and "aging" not in _phases(kegged)
        assert len([s for s in kegged if s.phase == "keg"]) == 9
        assert kegged[-1].phase == "drink"

    def test_keg_timing(self, extract_recipe):
        from brewday.services.timeline import compute_recipe_timeline
        kegged = compute_recipe_timeline(extract_recipe, is_bottled=False)
        keg = [s for s in kegged if s.phase == "keg"]

        assert all(s.time == 20262 for s in keg[:8])
        assert keg[8].time == 20262 + 7 * 1440
        assert keg[8].instructions.startswith("Taste test the beer.")
        assert kegged[-1].time == keg[8].time

    def test_keg_pressure_units(self, extract_recipe):
        from brewday.services.timeline import compute_recipe_timeline
        si = _texts(compute_recipe_timeline(extract_recipe, is_bottled=False), "keg")
        imperial = _texts(compute_recipe_timeline(extract_recipe, is_si_units=False, is_bottled=False), "keg")

        assert "0.82 bar" in si[7] and "4°C" in si[7]
        assert "11.9 psi" in imperial[7] and "39°F" in imperial[7]
