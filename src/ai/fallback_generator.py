"""
Deterministic content generation used when the model is unavailable.

Produces complete, schema-valid artifacts from the plan alone:
- short version and detail plan from a fixed lesson flow (AVIVA or a
  four-phase cognitive-activation flow)
- sequence skeleton with position-dependent lesson outlines
- keyword-driven refinement of an existing detail plan
"""

import math
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from src.engines.differentiation import DifferentiationEngine
from src.pedagogy.plan import (
    DEFAULT_DURATION_MINUTES,
    DetailPlan,
    DidacticDiagnosis,
    Differentiation,
    Phase,
    PhaseSummary,
    Plan,
    RubricRow,
    SequenceLesson,
    SequenceSkeleton,
    ShortVersion,
)
from src.pedagogy.types import AccessMode, StructureModel


FALLBACK_SEQUENCE_LESSONS = 4
KEYWORD_MIN_LENGTH = 6

PHASE_MATERIALS = ["Arbeitsmaterial", "Beamer", "Moderatorenkoffer"]
PLAN_B_TEXT = "Lehrervortrag mit Tafelbild (bei Technik-Ausfall)."
REFLECTION_NOTES = (
    'Reflexion: Wurde das "Threshold Concept" von der Mehrheit verstanden? '
    "War die kognitive Aktivierung hoch genug?"
)
LANGUAGE_SUPPORTS = [
    "Wortspeicher mit Fachbegriffen",
    "Satzmuster für Argumentation",
    "Visualisierung der Operatoren",
]
SUMMARY_SENTENCE_STARTERS = ["Ich vermute, dass...", "Ein Argument dafür ist...", "Im Vergleich dazu..."]
INTERMEDIATE_CHECK = "Formative Lernstandserhebung: kurzes Quiz oder Peer-Feedback"

_DURATION_PREFIX = re.compile(r"^\d+'\s")
_PLENUM_OR_SOLO = re.compile(r"Plenum|Einzelarbeit", re.IGNORECASE)

# Keyword-based topic analysis: first matching row wins.
_TOPIC_PROFILES = [
    (
        ("strom", "physik"),
        "Der geschlossene Stromkreis und der Energiefluss",
        'Strom wird "verbraucht" (statt Energieumwandlung)',
        "Sicherer Umgang mit Elektrizität im Alltag.",
    ),
    (
        ("geschichte", "zeit"),
        "Multiperspektivität von Quellen",
        'Geschichte ist "objektive Wahrheit"',
        "Erkennen von Manipulation in Medien heute.",
    ),
    (
        ("ethik", "fussball", "kommerzialisierung"),
        "Spannungsfeld zwischen Tradition und Marktlogik",
        'Dass Kommerzialisierung nur "böse" ist (Multiperspektivität fehlt)',
        "Kritische Konsumentenentscheidungen treffen.",
    ),
]

RUBRIC = [
    RubricRow(
        criteria="Fachverständnis",
        level_a="Nennt Basisbegriffe korrekt.",
        level_b="Erklärt Zusammenhänge verständlich.",
        level_c="Analysiert komplexe Wechselwirkungen.",
    ),
    RubricRow(
        criteria="Methodenkompetenz",
        level_a="Führt Arbeitsschritte nach Anleitung aus.",
        level_b="Plant das Vorgehen selbstständig.",
        level_c="Reflektiert das methodische Vorgehen kritisch.",
    ),
    RubricRow(
        criteria="Kommunikation",
        level_a="Verwendet Alltagssprache.",
        level_b="Nutzt Fachbegriffe meist korrekt.",
        level_c="Argumentiert präzise und adressatengerecht.",
    ),
]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class LessonContext(BaseModel):
    """Keyword analysis of the plan text."""

    topic: str
    keywords: List[str] = []
    threshold_concept: str
    misconception: str
    relevance: str


class PhaseTemplate(BaseModel):
    name: str
    description: str
    teacher: str
    child: str
    operation: str
    check: str


class FallbackGenerator:
    """Rule-based generator; every method is pure."""

    @classmethod
    def analyze_context(cls, plan: Plan) -> LessonContext:
        text = f"{plan.title} {plan.subject} {plan.topic_description}".lower()
        topic = plan.subject or "Thema"
        keywords = []
        for word in text.split():
            if len(word) >= KEYWORD_MIN_LENGTH and word not in keywords:
                keywords.append(word)

        threshold = f"Das Prinzip der Kausalität in {topic}"
        misconception = f"Dass {topic} statisch ist und nicht prozesshaft."
        relevance = f"Verständnis von {topic} ist essentiell für die Teilhabe an der Gesellschaft."
        for triggers, t, m, r in _TOPIC_PROFILES:
            if any(trigger in text for trigger in triggers):
                threshold, misconception, relevance = t, m, r
                break

        return LessonContext(
            topic=topic,
            keywords=keywords,
            threshold_concept=threshold,
            misconception=misconception,
            relevance=relevance,
        )

    @classmethod
    def learning_goals(cls, plan: Plan) -> List[str]:
        ctx = cls.analyze_context(plan)
        topic = plan.topic_description or ctx.topic
        return [
            f"Die SuS können die Kernmerkmale von «{topic}» analysieren, indem sie fachspezifische "
            "Quellen untersuchen und die Zusammenhänge in einer Mindmap strukturieren.",
            f"Die SuS können beurteilen, inwiefern das Konzept «{ctx.threshold_concept}» in Bezug "
            f"auf {topic} relevant ist.",
            f"Die SuS können ihr Wissen auf ein konkretes Fallbeispiel zu {topic} transferieren und "
            "begründete Lösungsansätze entwickeln.",
        ]

    # ── short version ────────────────────────────────────────────────────

    @classmethod
    def short_version(cls, plan: Plan) -> ShortVersion:
        ctx = cls.analyze_context(plan)
        phases = cls.lesson_flow(ctx, plan)
        slot1 = plan.didactic_slots.slot1
        structure_label = slot1.value.upper() if slot1 else "Standard"

        return ShortVersion(
            title=plan.title or f"{plan.subject}: {structure_label}",
            overview=(
                f"Diese {plan.duration_minutes}-minütige Lektion basiert auf dem Konzept "
                f"«{ctx.threshold_concept}». Sie folgt dem Prinzip des Backward Design und "
                "fokussiert auf kognitive Aktivierung."
            ),
            goals=plan.non_empty_goals() or cls.learning_goals(plan),
            phases_summary=[
                PhaseSummary(
                    name=_DURATION_PREFIX.sub("", p.name),
                    duration_minutes=p.duration_minutes,
                    description=p.description,
                )
                for p in phases
            ],
            differentiation_summary=Differentiation(
                niveau_a="Basis: Fokus auf Reproduktion und geführte Anwendung.",
                niveau_b="Standard: Selbstständige Bearbeitung mit Transfer-Anteil.",
                niveau_c="Challenge: Metakognitive Reflexion und komplexer Transfer.",
                sentence_starters=list(SUMMARY_SENTENCE_STARTERS),
                word_list=ctx.keywords,
                access_modes=[AccessMode.TEXT, AccessMode.VISUAL, AccessMode.AUDIO],
                support_hints="Scaffolding durch Visualisierung des Denkprozesses.",
            ),
            language_supports=list(LANGUAGE_SUPPORTS),
        )

    @classmethod
    def revise_short_version(cls, current: ShortVersion, instruction: str) -> ShortVersion:
        """Without a model the prose cannot be rewritten; the input is kept."""
        return current.model_copy(deep=True)

    # ── detail plan ──────────────────────────────────────────────────────

    @classmethod
    def detail_plan(cls, plan: Plan) -> DetailPlan:
        ctx = cls.analyze_context(plan)
        phases = DifferentiationEngine.differentiate_phases(cls.lesson_flow(ctx, plan), plan)
        return DetailPlan(
            phases=phases,
            plan_b_included=True,
            reflection_notes=REFLECTION_NOTES,
            didactic_diagnosis=DidacticDiagnosis(
                core_concept=ctx.threshold_concept,
                misconceptions=[
                    ctx.misconception,
                    "Fehlende Unterscheidung zwischen Ursache und Wirkung",
                    "Übergeneralisierung von Einzelfällen",
                ],
                threshold_concept=ctx.threshold_concept,
                relevance=ctx.relevance,
            ),
            assessment_rubric=[row.model_copy() for row in RUBRIC],
        )

    @classmethod
    def lesson_flow(cls, ctx: LessonContext, plan: Plan) -> List[Phase]:
        """Phases whose durations sum to the plan duration."""
        if plan.didactic_slots.slot1 == StructureModel.AVIVA:
            return cls._aviva_flow(ctx, plan.duration_minutes)
        return cls._activation_flow(ctx, plan.duration_minutes)

    @classmethod
    def _aviva_flow(cls, ctx: LessonContext, duration: int) -> List[Phase]:
        t_arrive = round_half_up(duration * 0.15)
        t_prior = round_half_up(duration * 0.15)
        t_inform = round_half_up(duration * 0.25)
        t_process = round_half_up(duration * 0.30)
        t_evaluate = duration - (t_arrive + t_prior + t_inform + t_process)
        focus_term = ctx.keywords[0] if ctx.keywords else "Kernbegriff"

        templates = [
            (t_arrive, PhaseTemplate(
                name="A: Ankommen & Aktivieren",
                description=(
                    "Herstellen von Präsenz und kognitive Aktivierung durch das Schwellenkonzept "
                    f"«{ctx.threshold_concept}»."
                ),
                teacher=(
                    "LP begrüsst die Klasse an der Tür. LP startet die Präsentation mit einem "
                    "provokanten Bild (z.B. Karikatur oder Meme passend zum Thema).\n"
                    "LP fragt in die Runde: «Was seht ihr hier? Was ist falsch an diesem Bild?» "
                    "(Wartezeit 10 Sek.)\n"
                    "LP sammelt erste Zurufe kommentarlos an der Tafel. LP: «Heute werden wir "
                    "genau dieses Missverständnis aufklären.»"
                ),
                child=(
                    "SuS kommen an, legen ihre Materialien bereit. Sie betrachten den Bildimpuls still.\n"
                    "SuS: «Das kann so nicht stimmen, weil...» (Erste Hypothesenbildung).\n"
                    "SuS aktivieren ihr Vorwissen und stellen Vermutungen an."
                ),
                operation="Hypothesen bilden",
                check="Blitzlicht: Wer hat eine Idee?",
            )),
            (t_prior, PhaseTemplate(
                name="V: Vorwissen aktivieren",
                description="Explizitmachung der Präkonzepte und Vernetzung.",
                teacher=(
                    "LP gibt den Auftrag: «Notiert in 2 Minuten alles, was ihr schon zu diesem "
                    "Begriff wisst, auf Post-Its.» (Cluster-Methode).\n"
                    "LP geht herum, beobachtet und clustert die Zettel anschliessend an der Tafel "
                    "nach Kategorien (z.B. Ursache/Wirkung).\n"
                    "LP würdigt das Vorwissen: «Wir sehen, ihr wisst schon viel, aber einiges ist noch unklar.»"
                ),
                child=(
                    "SuS arbeiten in Einzelarbeit, schreiben Assoziationen auf Zettel.\n"
                    "SuS kommen nach vorne und kleben ihre Zettel an die Tafel.\n"
                    "SuS vergleichen ihr Wissen mit dem der anderen."
                ),
                operation="Assoziieren & Strukturieren",
                check="Cluster an der Tafel.",
            )),
            (t_inform, PhaseTemplate(
                name="I: Informieren",
                description="Instruktion und Erarbeitung neuer Inhalte.",
                teacher=(
                    f"LP präsentiert den Kerninhalt (Input). Fokus auf {focus_term}.\n"
                    "LP nutzt Visualisierungen (Dual Coding) und erklärt: «Hier seht ihr den "
                    "Zusammenhang zwischen A und B.»\n"
                    "LP stoppt nach 5 Minuten für eine Verständnisfrage (Hinge Point Question): "
                    "«Zeigt mit den Fingern 1-5, wie sicher ihr euch seid.»"
                ),
                child=(
                    "SuS folgen dem Input aktiv (Active Listening).\n"
                    "SuS machen sich Notizen nach der Cornell-Methode.\n"
                    "SuS beantworten die Hinge-Point-Frage per Handzeichen."
                ),
                operation="Aufnehmen & Verarbeiten",
                check="Verständnisfrage (Hinge Point Question).",
            )),
            (t_process, PhaseTemplate(
                name="V: Verarbeiten",
                description="Vertiefte Auseinandersetzung und Anwendung.",
                teacher=(
                    "LP verteilt die Aufgabenblätter (A/B/C).\n"
                    "LP: «Wählt euer Niveau. Wer Hilfe braucht, kommt zum 'Support-Tisch' vorne rechts.»\n"
                    "LP coacht einzelne Gruppen, gibt formativ Feedback, aber keine Lösungen vor."
                ),
                child=(
                    "SuS wählen ihr Niveau selbstständig (Self-Regulated Learning).\n"
                    "Sie bearbeiten die Aufgabe (z.B. Fallbeispiel analysieren).\n"
                    "Sie nutzen Hilfsmittel (Wortliste, Scaffolding) bei Bedarf."
                ),
                operation="Anwenden & Transferieren",
                check="Lernprodukt (z.B. Lösungsskizze).",
            )),
            (t_evaluate, PhaseTemplate(
                name="A: Auswerten",
                description="Metakognitive Reflexion des Lernprozesses.",
                teacher=(
                    "LP fragt: «Wie hat sich eure Meinung vom Anfang verändert?»\n"
                    "LP bittet SuS, ihren Lernzuwachs auf einer Zielscheibe (an der Tür) beim "
                    "Rausgehen zu markieren (Exit Ticket).\n"
                    "LP verabschiedet die Klasse."
                ),
                child=(
                    "SuS vergleichen Vorwissen (V) mit neuem Wissen (I).\n"
                    "SuS reflektieren: «Ich habe heute verstanden, dass...»\n"
                    "SuS geben beim Rausgehen ihr Exit Ticket ab."
                ),
                operation="Reflektieren (Metakognition)",
                check="Rubrik-Selbsteinschätzung.",
            )),
        ]
        return [cls._create_phase(i, minutes, t) for i, (minutes, t) in enumerate(templates, start=1)]

    @classmethod
    def _activation_flow(cls, ctx: LessonContext, duration: int) -> List[Phase]:
        t_start = round_half_up(duration * 0.15)
        t_end = round_half_up(duration * 0.15)
        rest = duration - t_start - t_end
        t_work = round_half_up(rest * 0.6)
        t_transfer = rest - t_work

        templates = [
            (t_start, PhaseTemplate(
                name="Einstieg: Kognitive Dissonanz",
                description=f"Konfrontation mit einer Fehlvorstellung zu «{ctx.topic}».",
                teacher=(
                    f"LP zeigt ein kontroverses Zitat: «{ctx.topic} braucht niemand.»\n"
                    "LP fragt: «Wer stimmt zu? Steht auf!» (Barometer-Methode).\n"
                    "LP moderiert die kurze Diskussion: «Warum seht ihr das anders?»"
                ),
                child=(
                    "SuS positionieren sich körperlich im Raum.\n"
                    "SuS begründen ihre Meinung spontan.\n"
                    "SuS werden kognitiv aktiviert und motiviert."
                ),
                operation="Problematisieren",
                check="Meinungsbild.",
            )),
            (t_work, PhaseTemplate(
                name="Erarbeitung: Deep Dive",
                description=f"Analyse von Material (Text/Video) zu «{ctx.topic}».",
                teacher=(
                    "LP erklärt den Arbeitsauftrag: «Analysiert die Quelle in Partnerarbeit. "
                    "Sucht nach Hinweisen auf...»\n"
                    "LP stellt Timer auf 15 Minuten.\n"
                    "LP beobachtet und unterstützt bei Verständnisfragen."
                ),
                child=(
                    "SuS lesen/schauen das Material aktiv.\n"
                    "Sie markieren Schlüsselbegriffe (Marking).\n"
                    "Sie tauschen sich mit dem Partner aus (Think-Pair-Share)."
                ),
                operation="Analysieren",
                check="Zwischenergebnis.",
            )),
            (t_transfer, PhaseTemplate(
                name="Sicherung & Transfer",
                description="Synthese der Ergebnisse und Anwendung.",
                teacher=(
                    "LP sammelt Ergebnisse im Plenum (Visualizer/Tafel).\n"
                    "LP fordert Transfer: «Was bedeutet das für unser Beispiel von vorhin?»"
                ),
                child=(
                    "SuS präsentieren ihre Ergebnisse kurz und prägnant.\n"
                    "SuS verknüpfen das Neue mit dem Bekannten."
                ),
                operation="Synthetisieren",
                check="Präsentation.",
            )),
            (t_end, PhaseTemplate(
                name="Abschluss: Meta-View",
                description="Rückblick und Ausblick.",
                teacher=(
                    "LP: «Zusammenfassend können wir sagen...»\n"
                    "LP gibt Hausaufgabe/Ausblick auf nächste Stunde.\n"
                    "LP: «Danke für eure Mitarbeit!»"
                ),
                child="SuS packen zusammen.\nSuS notieren Hausaufgaben.",
                operation="Reflektieren",
                check="Exit-Ticket.",
            )),
        ]
        return [cls._create_phase(i, minutes, t) for i, (minutes, t) in enumerate(templates, start=1)]

    @classmethod
    def _create_phase(cls, number: int, minutes: int, template: PhaseTemplate) -> Phase:
        return Phase(
            id=f"p-{number}",
            name=f"{minutes}' {template.name}",
            duration_minutes=minutes,
            description=template.description,
            teacher_actions=template.teacher,
            child_actions=f"{template.child}\n(Denkoperation: {template.operation})",
            didactic_comment=f"Checkpoint: {template.check}",
            materials=list(PHASE_MATERIALS),
            social_form="Partner-/Gruppenarbeit" if number == 2 else "Plenum",
            differentiation=Differentiation(
                niveau_a="Stark vorstrukturiert, Fokus auf Basisbegriffe.",
                niveau_b="Standard-Auftrag mit Hilfekarten.",
                niveau_c="Offene Aufgabenstellung, Transferforderung.",
            ),
            plan_b_alternative=PLAN_B_TEXT,
        )

    # ── sequence ─────────────────────────────────────────────────────────

    @classmethod
    def sequence_skeleton(cls, plan: Plan) -> SequenceSkeleton:
        total = plan.lesson_count or FALLBACK_SEQUENCE_LESSONS
        subject = plan.subject or plan.topic_description or "Thema"
        check_at = math.ceil(total / 2)
        lessons = []
        for i in range(1, total + 1):
            outline = cls._lesson_outline(i, total, subject)
            lessons.append(SequenceLesson(
                id=f"l-{i}",
                lesson_number=i,
                title=f"Lektion {i}: {outline['title']}",
                focus=outline["focus"],
                goals=outline["goals"],
                duration_minutes=plan.duration_minutes or DEFAULT_DURATION_MINUTES,
                intermediate_check=INTERMEDIATE_CHECK if i == check_at else None,
            ))
        return SequenceSkeleton(
            lessons=lessons,
            progression=(
                f"Spiralcurricular: Aufbau von Grundlagen zu «{subject}» über Erarbeitung und "
                "Vertiefung bis zur Reflexion und Transfer."
            ),
            overall_goals=[
                f"Die SuS können «{subject}» in seinen Grundzügen erklären.",
                "Die SuS können das Gelernte auf neue Situationen anwenden.",
            ],
        )

    @staticmethod
    def _lesson_outline(i: int, total: int, subject: str) -> Dict[str, Any]:
        if i == 1:
            return {
                "title": f"Einstieg: {subject} entdecken",
                "focus": "Vorwissen aktivieren & Problemstellung erschliessen",
                "goals": [f"Die SuS können ihr Vorwissen zu «{subject}» aktivieren und eigene Fragen formulieren."],
            }
        if i == total:
            return {
                "title": f"Abschluss: {subject} reflektieren",
                "focus": "Transfer, Reflexion & Lernprodukt sichern",
                "goals": [
                    f"Die SuS können das Gelernte zu «{subject}» auf eine neue Situation übertragen "
                    "und ihren Lernprozess reflektieren."
                ],
            }
        if i == 2:
            return {
                "title": f"Grundlagen: {subject} erarbeiten",
                "focus": "Basiswissen erarbeiten & strukturieren",
                "goals": [f"Die SuS können die Grundbegriffe und -konzepte zu «{subject}» erklären."],
            }
        if i == total - 1:
            return {
                "title": f"Vertiefung: {subject} anwenden",
                "focus": "Anwendung in komplexeren Kontexten",
                "goals": [f"Die SuS können die erarbeiteten Konzepte zu «{subject}» auf neue Probleme anwenden."],
            }
        return {
            "title": f"Erarbeitung {i - 1}: {subject} vertiefen",
            "focus": "Systematische Erarbeitung & Übung",
            "goals": [f"Die SuS können Teilaspekte von «{subject}» eigenständig erarbeiten und üben."],
        }

    # ── refinement ───────────────────────────────────────────────────────

    @classmethod
    def refine_detail_plan(cls, current: DetailPlan, instruction: str) -> DetailPlan:
        """Apply keyword-triggered edits to a copy of ``current``."""
        lower = instruction.lower()
        refined = current.model_copy(deep=True)
        phases = refined.phases

        if phases and _mentions(lower, "kürz", "kurz", "schneller"):
            longest = max(phases, key=lambda p: p.duration_minutes)
            longest.duration_minutes = max(5, round_half_up(longest.duration_minutes * 0.6))
            longest.description += " (gekürzt)"

        if _mentions(lower, "gruppenarbeit", "gruppe", "kooperativ"):
            for phase in phases:
                name = phase.name.lower()
                if "einstieg" in name or "abschluss" in name:
                    continue
                phase.social_form = "Gruppenarbeit (3–4 SuS)"
                if phase.teacher_actions:
                    phase.teacher_actions = _PLENUM_OR_SOLO.sub("Gruppenarbeit", phase.teacher_actions)

        if phases and _mentions(lower, "quiz", "test", "prüf"):
            phases[-1].description += " Inkl. kurzes formatives Quiz zur Lernstandserhebung."

        if _mentions(lower, "digital", "tablet", "app"):
            for phase in phases:
                materials = phase.materials or []
                if not any("tablet" in m.lower() for m in materials):
                    materials.append("Tablets / digitale Endgeräte")
                phase.materials = materials

        if _mentions(lower, "differenz", "niveau"):
            for phase in phases:
                if phase.differentiation is None:
                    continue
                phase.differentiation.niveau_a += " Zusätzlich: Scaffolding und Hilfsstruktur."
                phase.differentiation.niveau_c += " Zusätzlich: erweiterte Vertiefungsaufgabe."

        return refined


def _mentions(text: str, *needles: str) -> bool:
    return any(n in text for n in needles)


def lesson_scoped_plan(plan: Plan, index: int) -> Optional[Plan]:
    """
    Plan narrowed to one sequence lesson, used to generate that lesson's detail.

    Returns None when the plan has no lesson at ``index``.
    """
    skeleton = plan.sequence_skeleton
    if skeleton is None or index < 0 or index >= len(skeleton.lessons):
        return None
    lesson = skeleton.lessons[index]
    topic = plan.topic_description or plan.subject
    return plan.model_copy(
        update={
            "title": lesson.title,
            "topic_description": f"{topic}, Lektion {index + 1}: {lesson.focus}",
            "duration_minutes": lesson.duration_minutes,
            "goals": list(lesson.goals) or plan.goals,
            "short_version": lesson.short_version,
        },
        deep=True,
    )
