"""
Differentiation Engine - three-tier adaptations per lesson phase.

For a phase and a class profile produces:
- Niveau A (Basis): scaffolded-down variant
- Niveau B (Standard): the phase as planned
- Niveau C (Challenge): extended variant
- Language scaffolding for weak language levels or highly mixed classes

All functions are pure. Identical input yields identical output.
"""

import re
from enum import Enum
from typing import Dict, List, Optional, Pattern, Sequence, Tuple

from pydantic import BaseModel

from src.pedagogy.plan import ClassProfile, Differentiation, Phase, Plan
from src.pedagogy.types import (
    BEGINNER_LANGUAGE_LEVELS,
    LOW_LANGUAGE_LEVELS,
    AccessMode,
    Heterogeneity,
    LanguageLevel,
    Level,
)


class PhaseType(str, Enum):
    """Didactic function of a phase, inferred from its wording."""
    INPUT = "input"
    PRACTICE = "practice"
    DISCUSSION = "discussion"
    CREATIVE = "creative"
    ASSESSMENT = "assessment"
    REFLECTION = "reflection"
    GENERAL = "general"


# Priority order matters: first match wins.
PHASE_TYPE_PATTERNS: List[Tuple[PhaseType, Pattern[str]]] = [
    (PhaseType.INPUT, re.compile(r"einstieg|einführ|input|erklär|inform|vorstell|präsent")),
    (PhaseType.PRACTICE, re.compile(r"üb|anwend|vertieft|arbeit|aufgab|bearbeit|training")),
    (PhaseType.DISCUSSION, re.compile(r"diskuss|debatt|gespräch|austausch|dialog|diskurs|argum")),
    (PhaseType.CREATIVE, re.compile(r"gestalt|kreativ|produkt|erstell|entwer|design|projekt")),
    (PhaseType.ASSESSMENT, re.compile(r"prüf|test|bewert|assessment|kontroll|überprüf|evaluati")),
    (PhaseType.REFLECTION, re.compile(r"reflex|rückblick|auswert|meta|zusammenfass|sicher")),
]


class PhaseInput(BaseModel):
    """The parts of a phase the engine looks at."""

    name: str
    description: str = ""
    social_form: Optional[str] = None


class DifferentiationContext(BaseModel):
    subject: str = ""
    level: Optional[Level] = None


class DifferentiationEngine:
    """Rule-based generator for Niveau A/B/C and language supports."""

    NIVEAU_B_PREFIX = "Standardausführung"
    MAX_EXTRACTED_WORDS = 6
    MAX_DOMAIN_TERMS = 4
    MAX_WORD_LIST = 8

    _word_pattern = re.compile(r"[A-ZÄÖÜ][a-zäöüß]{3,}")

    NIVEAU_A_SCAFFOLDS: Dict[PhaseType, List[str]] = {
        PhaseType.INPUT: [
            "Vereinfachter Text mit Schlüsselbegriff-Markierungen.",
            "Visuelles Begleitmaterial (Bilder, Symbole) zur Unterstützung.",
            "Vorentlastung der wichtigsten Begriffe.",
        ],
        PhaseType.PRACTICE: [
            "Reduzierte Aufgabenanzahl (50% des Standards).",
            "Schritt-für-Schritt-Anleitung mit Beispiellösung.",
            "Hilfsblatt mit Lösungsstrategien verfügbar.",
        ],
        PhaseType.DISCUSSION: [
            "Gesprächshilfe mit vorformulierten Satzanfängen.",
            "Partnerarbeit statt Plenum (kleinerer Rahmen).",
            "Bildkarten als Gesprächsanlass.",
        ],
        PhaseType.CREATIVE: [
            "Vorlage oder Teilprodukt als Startpunkt.",
            "Klare Gestaltungskriterien als Checkliste.",
            "Reduzierte Komplexität (ein Material, eine Technik).",
        ],
        PhaseType.ASSESSMENT: [
            "Vereinfachte Aufgabenformulierung.",
            "Multiple-Choice-Format statt offene Fragen.",
            "Mehr Bearbeitungszeit.",
        ],
        PhaseType.REFLECTION: [
            "Reflexionsfragen als Ankreuz-Format.",
            "Smileys / Ampel statt Freitext.",
            "Partnerreflexion statt Einzelreflexion.",
        ],
        PhaseType.GENERAL: [
            "Vereinfachtes Material mit Hilfsstrukturen.",
            "Weniger Aufgaben, mehr Bearbeitungszeit.",
            "Partnerarbeit oder Tandems zur Unterstützung.",
        ],
    }

    NIVEAU_C_EXTENSIONS: Dict[PhaseType, List[str]] = {
        PhaseType.INPUT: [
            "Vertiefende Zusatzfrage zum Weiterdenken.",
            "Vergleich mit anderem Themengebiet herstellen.",
            "Fachbegriffe auch in Fremdsprache / Fachsprache einordnen.",
        ],
        PhaseType.PRACTICE: [
            "Zusatzaufgaben mit erhöhtem Anforderungsniveau.",
            "Offene Problemstellung ohne vorgegebenen Lösungsweg.",
            "Transfer auf unbekannte Situationen.",
        ],
        PhaseType.DISCUSSION: [
            "Moderationsrolle übernehmen.",
            "Gegenargumente formulieren und verteidigen.",
            "Diskussionsergebnisse schriftlich zusammenfassen.",
        ],
        PhaseType.CREATIVE: [
            "Erweitertes Produkt mit zusätzlichen Gestaltungselementen.",
            "Eigene Kriterien für Qualitätsbeurteilung entwickeln.",
            "Peer-Feedback geben und einbauen.",
        ],
        PhaseType.ASSESSMENT: [
            "Offene Analyse- oder Transferaufgaben.",
            "Eigene Aufgaben zum Thema erstellen.",
            "Fehleranalyse bei Beispiellösungen.",
        ],
        PhaseType.REFLECTION: [
            "Reflexion auf Meta-Ebene: Lernstrategien analysieren.",
            "Schriftlicher Reflexionstext mit Begründung.",
            "Lernziel-Selbstbewertung mit Evidenz.",
        ],
        PhaseType.GENERAL: [
            "Erweiterte Aufgabenstellung mit Transferbezug.",
            "Selbstständige Vertiefung und Reflexion.",
            "Ergebnisse präsentieren oder dokumentieren.",
        ],
    }

    SENTENCE_STARTERS: Dict[PhaseType, List[str]] = {
        PhaseType.INPUT: [
            "Ich habe verstanden, dass…",
            "Das Wichtigste ist…",
            "Mir ist aufgefallen, dass…",
            "Ein Beispiel dafür ist…",
        ],
        PhaseType.PRACTICE: [
            "Zuerst mache ich…",
            "Dann versuche ich…",
            "Ich beginne mit…",
            "Mein nächster Schritt ist…",
        ],
        PhaseType.DISCUSSION: [
            "Ich denke, dass…",
            "Ich bin anderer Meinung, weil…",
            "Ich stimme zu, weil…",
            "Dazu möchte ich ergänzen, dass…",
            "Meiner Meinung nach…",
            "Ein Argument dafür ist…",
        ],
        PhaseType.CREATIVE: [
            "Meine Idee ist…",
            "Ich möchte darstellen, wie…",
            "Für mein Produkt verwende ich…",
            "Ich habe mich entschieden für…",
        ],
        PhaseType.ASSESSMENT: [
            "Die Lösung ist…, weil…",
            "Ich habe herausgefunden, dass…",
            "Der Unterschied zwischen X und Y ist…",
        ],
        PhaseType.REFLECTION: [
            "Heute habe ich gelernt, dass…",
            "Schwierig war für mich…",
            "Beim nächsten Mal möchte ich…",
            "Besonders gut gelungen ist…",
            "Ich habe mein Ziel erreicht, weil…",
        ],
        PhaseType.GENERAL: [
            "Ich denke, dass…",
            "Mir ist aufgefallen, dass…",
            "Ich habe bemerkt, dass…",
            "Das bedeutet, dass…",
        ],
    }

    # (subject keywords, terms); first matching row wins
    DOMAIN_TERMS: List[Tuple[Tuple[str, ...], List[str]]] = [
        (("mathe",), ["Gleichung", "Variable", "Ergebnis", "Operation", "Berechnung"]),
        (("deutsch",), ["Textsorte", "Absatz", "Argument", "Hauptaussage", "Zusammenfassung"]),
        (("nmg", "natur"), ["Experiment", "Hypothese", "Beobachtung", "Ergebnis", "Lebensraum"]),
        (("geschich", "rzg"), ["Quelle", "Epoche", "Ursache", "Wirkung", "Ereignis"]),
    ]

    @classmethod
    def detect_phase_type(cls, name: str, description: str) -> PhaseType:
        text = f"{name} {description}".lower()
        for phase_type, pattern in PHASE_TYPE_PATTERNS:
            if pattern.search(text):
                return phase_type
        return PhaseType.GENERAL

    @classmethod
    def needs_language_support(cls, profile: ClassProfile) -> bool:
        return (
            profile.language_level in LOW_LANGUAGE_LEVELS
            or profile.heterogeneity == Heterogeneity.HIGH
        )

    @classmethod
    def generate(
        cls,
        phase: PhaseInput,
        profile: ClassProfile,
        context: DifferentiationContext,
    ) -> Differentiation:
        """Differentiation for a single phase."""
        phase_type = cls.detect_phase_type(phase.name, phase.description)
        support = cls.needs_language_support(profile)

        return Differentiation(
            niveau_a=" ".join(cls.NIVEAU_A_SCAFFOLDS[phase_type]),
            niveau_b=f"{cls.NIVEAU_B_PREFIX}: {phase.description}",
            niveau_c=" ".join(cls.NIVEAU_C_EXTENSIONS[phase_type]),
            sentence_starters=list(cls.SENTENCE_STARTERS[phase_type]) if support else None,
            word_list=cls.build_word_list(phase.description, context.subject) if support else None,
            access_modes=cls.access_modes(phase_type, profile),
            support_hints=cls.support_hint(profile, phase_type) if support else None,
        )

    @classmethod
    def build_word_list(cls, description: str, subject: str) -> List[str]:
        """Capitalized terms from the text plus a few subject vocabulary words."""
        extracted = _unique(cls._word_pattern.findall(f"{description} {subject}"))
        subject_lower = subject.lower()
        domain: List[str] = []
        for keywords, terms in cls.DOMAIN_TERMS:
            if any(k in subject_lower for k in keywords):
                domain = terms
                break
        combined = extracted[: cls.MAX_EXTRACTED_WORDS] + domain[: cls.MAX_DOMAIN_TERMS]
        return _unique(combined)[: cls.MAX_WORD_LIST]

    @classmethod
    def access_modes(cls, phase_type: PhaseType, profile: ClassProfile) -> List[AccessMode]:
        modes = [AccessMode.TEXT]
        beginner = profile.language_level in BEGINNER_LANGUAGE_LEVELS
        if beginner or profile.heterogeneity == Heterogeneity.HIGH:
            modes.append(AccessMode.VISUAL)
        if phase_type in (PhaseType.INPUT, PhaseType.DISCUSSION) or beginner:
            modes.append(AccessMode.AUDIO)
        if phase_type in (PhaseType.CREATIVE, PhaseType.PRACTICE):
            modes.append(AccessMode.PRODUCT)
        return modes

    @classmethod
    def support_hint(cls, profile: ClassProfile, phase_type: PhaseType) -> str:
        hints: List[str] = []
        if profile.language_level in BEGINNER_LANGUAGE_LEVELS:
            hints.append("Schlüsselwörter vorentlasten und an der Tafel sichtbar machen.")
            hints.append("Einfache Sprache verwenden, komplexe Sätze aufteilen.")
        if profile.language_level == LanguageLevel.B1:
            hints.append("Fachbegriffe mit Erklärungen versehen.")
        if profile.heterogeneity == Heterogeneity.HIGH:
            hints.append("Partnersystem (stärkere/schwächere SuS im Tandem) einsetzen.")
        if phase_type == PhaseType.DISCUSSION and profile.language_level in LOW_LANGUAGE_LEVELS:
            hints.append("Gesprächsregeln visuell aufhängen. Sprechzeit in kleinen Gruppen maximieren.")
        return " ".join(hints)

    @classmethod
    def differentiate_phases(cls, phases: Sequence[Phase], plan: Plan) -> List[Phase]:
        """Copy of ``phases`` with freshly generated differentiation on each."""
        context = DifferentiationContext(subject=plan.subject, level=plan.level)
        result = []
        for phase in phases:
            diff = cls.generate(
                PhaseInput(
                    name=phase.name,
                    description=phase.description,
                    social_form=phase.social_form,
                ),
                plan.class_profile,
                context,
            )
            result.append(phase.model_copy(update={"differentiation": diff}, deep=True))
        return result


def _unique(items: Sequence[str]) -> List[str]:
    seen = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out
