"""Unit tests for the differentiation engine."""

from conftest import make_plan

from src.ai.fallback_generator import FallbackGenerator
from src.engines.differentiation import (
    DifferentiationContext,
    DifferentiationEngine,
    PhaseInput,
    PhaseType,
)
from src.pedagogy.plan import ClassProfile
from src.pedagogy.types import AccessMode, Heterogeneity, LanguageLevel


STRONG_CLASS = ClassProfile(language_level=LanguageLevel.C1, heterogeneity=Heterogeneity.LOW)
WEAK_CLASS = ClassProfile(language_level=LanguageLevel.A2, heterogeneity=Heterogeneity.HIGH)


class TestPhaseTypeDetection:

    def test_first_matching_pattern_wins(self):
        # "Einstieg" (input) beats "Diskussion" (discussion)
        assert DifferentiationEngine.detect_phase_type("Einstieg mit Diskussion", "") == PhaseType.INPUT

    def test_detection_uses_description(self):
        assert DifferentiationEngine.detect_phase_type("Phase 3", "Debatte im Plenum") == PhaseType.DISCUSSION

    def test_reflection(self):
        assert DifferentiationEngine.detect_phase_type("Rückblick", "") == PhaseType.REFLECTION

    def test_unknown_is_general(self):
        assert DifferentiationEngine.detect_phase_type("Pause", "Znüni") == PhaseType.GENERAL


class TestGenerate:

    def test_niveau_b_is_the_phase_as_planned(self):
        phase = PhaseInput(name="Übung", description="Aufgaben zur Bruchrechnung lösen")
        diff = DifferentiationEngine.generate(phase, STRONG_CLASS, DifferentiationContext(subject="Mathematik"))
        assert diff.niveau_b == "Standardausführung: Aufgaben zur Bruchrechnung lösen"
        assert diff.niveau_a == " ".join(DifferentiationEngine.NIVEAU_A_SCAFFOLDS[PhaseType.PRACTICE])
        assert diff.niveau_c == " ".join(DifferentiationEngine.NIVEAU_C_EXTENSIONS[PhaseType.PRACTICE])

    def test_strong_class_gets_no_language_support(self):
        phase = PhaseInput(name="Input", description="Der Lehrer erklärt den Stromkreis")
        diff = DifferentiationEngine.generate(phase, STRONG_CLASS, DifferentiationContext(subject="Physik"))
        assert diff.sentence_starters is None
        assert diff.word_list is None
        assert diff.support_hints is None

    def test_weak_class_gets_language_support(self):
        phase = PhaseInput(name="Diskussion", description="Austausch zu Energie und Umwelt")
        diff = DifferentiationEngine.generate(phase, WEAK_CLASS, DifferentiationContext(subject="NMG"))
        assert diff.sentence_starters == DifferentiationEngine.SENTENCE_STARTERS[PhaseType.DISCUSSION]
        assert "Energie" in diff.word_list
        assert "Umwelt" in diff.word_list
        assert "Experiment" in diff.word_list
        assert "Partnersystem" in diff.support_hints
        assert "Gesprächsregeln" in diff.support_hints

    def test_high_heterogeneity_alone_triggers_support(self):
        profile = ClassProfile(language_level=LanguageLevel.C1, heterogeneity=Heterogeneity.HIGH)
        assert DifferentiationEngine.needs_language_support(profile) is True

    def test_generation_is_deterministic(self):
        phase = PhaseInput(name="Erarbeitung", description="Texte lesen und Fragen beantworten")
        ctx = DifferentiationContext(subject="Deutsch")
        first = DifferentiationEngine.generate(phase, WEAK_CLASS, ctx)
        second = DifferentiationEngine.generate(phase, WEAK_CLASS, ctx)
        assert first == second


class TestWordList:

    def test_short_and_lowercase_words_skipped(self):
        words = DifferentiationEngine.build_word_list("Der Hund und die Katze", "")
        assert words == ["Hund", "Katze"]

    def test_duplicates_removed_and_capped(self):
        description = "Quelle Quelle Epoche Ursache Wirkung Ereignis Zeitraum Herrscher Kloster"
        words = DifferentiationEngine.build_word_list(description, "Geschichte")
        assert len(words) == len(set(words))
        assert len(words) <= DifferentiationEngine.MAX_WORD_LIST

    def test_umlauts_count_as_letters(self):
        assert "Übung" in DifferentiationEngine.build_word_list("Übung macht den Meister", "")


class TestAccessModes:

    def test_text_always_first(self):
        modes = DifferentiationEngine.access_modes(PhaseType.GENERAL, STRONG_CLASS)
        assert modes == [AccessMode.TEXT]

    def test_beginner_class_in_practice(self):
        modes = DifferentiationEngine.access_modes(PhaseType.PRACTICE, WEAK_CLASS)
        assert modes == [AccessMode.TEXT, AccessMode.VISUAL, AccessMode.AUDIO, AccessMode.PRODUCT]


def test_differentiate_phases_replaces_every_phase():
    plan = make_plan()
    phases = FallbackGenerator.lesson_flow(FallbackGenerator.analyze_context(plan), plan)
    result = DifferentiationEngine.differentiate_phases(phases, plan)
    assert [p.id for p in result] == [p.id for p in phases]
    for before, after in zip(phases, result):
        assert after.differentiation.niveau_b.startswith("Standardausführung: ")
        assert after.differentiation.niveau_b.endswith(before.description)
    # input untouched
    assert phases[0].differentiation.niveau_a == "Stark vorstrukturiert, Fokus auf Basisbegriffe."
