"""
Static Lehrplan 21 competency catalog.

A curated subset covering the subjects PlanPilot is most often used for.
"""

from typing import List

from src.pedagogy.plan import CurriculumCompetency


CYCLE_1 = "Zyklus 1"
CYCLE_2 = "Zyklus 2"
CYCLE_3 = "Zyklus 3"


def _c(
    code: str,
    area: str,
    competency_area: str,
    competency: str,
    cycle: str,
    indicators: List[str],
) -> CurriculumCompetency:
    return CurriculumCompetency(
        id=f"lp21-{code.lower()}",
        code=code,
        area=area,
        competency_area=competency_area,
        competency=competency,
        cycle=cycle,
        level_indicators=indicators,
    )


LP21_COMPETENCIES: List[CurriculumCompetency] = [
    # Mathematik
    _c("MA.1.A.1", "Mathematik", "Zahl und Variable",
       "Die Schülerinnen und Schüler verstehen und verwenden arithmetische Begriffe und Symbole.",
       CYCLE_1, ["Zahlen bis 100 lesen und schreiben", "Vorgänger und Nachfolger bestimmen"]),
    _c("MA.1.A.2", "Mathematik", "Zahl und Variable",
       "Die Schülerinnen und Schüler können flexibel zählen, Zahlen nach der Grösse ordnen und Ergebnisse überschlagen.",
       CYCLE_2, ["Zahlen bis 1 Million ordnen", "Ergebnisse runden und überschlagen"]),
    _c("MA.1.A.3", "Mathematik", "Zahl und Variable",
       "Die Schülerinnen und Schüler können addieren, subtrahieren, multiplizieren, dividieren und potenzieren.",
       CYCLE_3, ["Terme mit Variablen vereinfachen", "Gleichungen lösen"]),
    _c("MA.1.B.1", "Mathematik", "Zahl und Variable",
       "Die Schülerinnen und Schüler können Rechenwege darstellen, beschreiben, austauschen und nachvollziehen.",
       CYCLE_2, ["Rechenwege vergleichen", "Operationen begründen"]),
    _c("MA.2.A.1", "Mathematik", "Form und Raum",
       "Die Schülerinnen und Schüler verstehen und verwenden Begriffe und Symbole der Geometrie.",
       CYCLE_1, ["Formen benennen", "Lagebeziehungen beschreiben"]),
    _c("MA.2.B.1", "Mathematik", "Form und Raum",
       "Die Schülerinnen und Schüler können Figuren falten, skizzieren, zeichnen und konstruieren.",
       CYCLE_3, ["Dreiecke konstruieren", "Winkel messen"]),
    _c("MA.3.A.1", "Mathematik", "Grössen, Funktionen, Daten und Zufall",
       "Die Schülerinnen und Schüler können Grössen vergleichen, messen und umwandeln.",
       CYCLE_2, ["Längen und Gewichte messen", "Einheiten umwandeln"]),
    _c("MA.3.C.1", "Mathematik", "Grössen, Funktionen, Daten und Zufall",
       "Die Schülerinnen und Schüler können Daten erheben, darstellen und interpretieren.",
       CYCLE_3, ["Diagramme lesen", "Mittelwerte berechnen"]),
    # Deutsch
    _c("D.1.A.1", "Deutsch", "Hören",
       "Die Schülerinnen und Schüler können Laute, Silben und Stimmen unterscheiden.",
       CYCLE_1, ["Reime erkennen", "Silben klatschen"]),
    _c("D.2.A.1", "Deutsch", "Lesen",
       "Die Schülerinnen und Schüler können Buchstaben und Wörter lesen und Texte verstehen.",
       CYCLE_1, ["Kurze Sätze lesen", "Bilder Texten zuordnen"]),
    _c("D.2.B.1", "Deutsch", "Lesen",
       "Die Schülerinnen und Schüler können wichtige Informationen aus Sachtexten entnehmen.",
       CYCLE_2, ["Hauptaussage erkennen", "Schlüsselwörter markieren"]),
    _c("D.2.C.1", "Deutsch", "Lesen",
       "Die Schülerinnen und Schüler können literarische Texte lesen und verstehen.",
       CYCLE_3, ["Figuren charakterisieren", "Textsorte bestimmen"]),
    _c("D.3.B.1", "Deutsch", "Sprechen",
       "Die Schülerinnen und Schüler können sich in monologischen Situationen angemessen ausdrücken.",
       CYCLE_2, ["Kurzvortrag halten", "Stichwortkarten nutzen"]),
    _c("D.3.C.1", "Deutsch", "Sprechen",
       "Die Schülerinnen und Schüler können sich aktiv an einem Dialog beteiligen und Argumente vertreten.",
       CYCLE_3, ["Argumente begründen", "Gegenpositionen aufnehmen"]),
    _c("D.4.D.1", "Deutsch", "Schreiben",
       "Die Schülerinnen und Schüler können ihre Ideen und Gedanken in eine sinnvolle Abfolge bringen.",
       CYCLE_2, ["Absatz gliedern", "Einleitung und Schluss schreiben"]),
    _c("D.4.E.1", "Deutsch", "Schreiben",
       "Die Schülerinnen und Schüler können Texte überarbeiten und eine Zusammenfassung verfassen.",
       CYCLE_3, ["Zusammenfassung schreiben", "Texte sprachlich überarbeiten"]),
    # Natur, Mensch, Gesellschaft
    _c("NMG.1.2", "NMG", "Identität, Körper, Gesundheit",
       "Die Schülerinnen und Schüler können Körper und Sinne wahrnehmen und beschreiben.",
       CYCLE_1, ["Sinnesorgane benennen", "Körperteile zuordnen"]),
    _c("NMG.2.1", "NMG", "Tiere, Pflanzen und Lebensräume",
       "Die Schülerinnen und Schüler können Tiere und Pflanzen in ihren Lebensräumen erkunden und dokumentieren.",
       CYCLE_1, ["Lebensraum beschreiben", "Beobachtungen festhalten"]),
    _c("NMG.3.3", "NMG", "Stoffe, Energie und Bewegungen",
       "Die Schülerinnen und Schüler können Energieformen und Energieumwandlungen untersuchen, etwa im Stromkreis.",
       CYCLE_2, ["Einfachen Stromkreis bauen", "Leiter und Nichtleiter unterscheiden"]),
    _c("NMG.4.1", "NMG", "Phänomene der belebten und unbelebten Natur",
       "Die Schülerinnen und Schüler können Experimente planen, durchführen und eine Hypothese überprüfen.",
       CYCLE_2, ["Hypothese formulieren", "Experiment protokollieren"]),
    _c("NMG.9.2", "NMG", "Zeit, Dauer und Wandel",
       "Die Schülerinnen und Schüler können Dauer und Wandel bei sich sowie in der Geschichte erkennen.",
       CYCLE_2, ["Zeitstrahl erstellen", "Früher und heute vergleichen"]),
    # Natur und Technik
    _c("NT.5.1", "Natur und Technik", "Elektrizität und Magnetismus",
       "Die Schülerinnen und Schüler können elektrische Stromkreise untersuchen und Energieumwandlungen erklären.",
       CYCLE_3, ["Stromstärke messen", "Schaltungen skizzieren"]),
    _c("NT.9.1", "Natur und Technik", "Ökosysteme",
       "Die Schülerinnen und Schüler können Ökosysteme erkunden und Wechselwirkungen beschreiben.",
       CYCLE_3, ["Nahrungsnetz darstellen", "Einflüsse des Menschen beurteilen"]),
    # Räume, Zeiten, Gesellschaften
    _c("RZG.5.1", "RZG", "Schweiz in Tradition und Wandel verstehen",
       "Die Schülerinnen und Schüler können Entstehung und Entwicklung der Schweiz anhand einer Quelle erklären.",
       CYCLE_3, ["Quellen kritisch lesen", "Ereignisse einordnen"]),
    _c("RZG.6.1", "RZG", "Weltgeschichtliche Kontinuitäten und Umbrüche erklären",
       "Die Schülerinnen und Schüler können Ursache und Wirkung historischer Umbrüche einer Epoche analysieren.",
       CYCLE_3, ["Epochen vergleichen", "Ursachen benennen"]),
    _c("RZG.8.1", "RZG", "Geschichtskultur analysieren und nutzen",
       "Die Schülerinnen und Schüler können Geschichte und Geschichten unterscheiden und Multiperspektivität erkennen.",
       CYCLE_3, ["Perspektiven vergleichen", "Darstellungen hinterfragen"]),
    # Ethik, Religionen, Gemeinschaft
    _c("ERG.2.1", "ERG", "Werte und Normen klären und Entscheidungen verantworten",
       "Die Schülerinnen und Schüler können Werte und Normen erläutern, prüfen und vertreten.",
       CYCLE_3, ["Dilemma diskutieren", "Wertekonflikt beschreiben"]),
    # Fremdsprachen
    _c("FS1E.1.A.1", "Englisch", "Hören",
       "Die Schülerinnen und Schüler können Gesprächen die wichtigsten Informationen entnehmen.",
       CYCLE_2, ["Einfache Anweisungen verstehen", "Schlüsselwörter heraushören"]),
    _c("FS1E.3.A.1", "Englisch", "Dialogisches Sprechen",
       "Die Schülerinnen und Schüler können an Gesprächen teilnehmen und einfache Fragen stellen.",
       CYCLE_3, ["Sich vorstellen", "Meinungen austauschen"]),
    # Medien und Informatik
    _c("MI.1.3", "Medien und Informatik", "Medien",
       "Die Schülerinnen und Schüler können Gedanken, Meinungen und Wissen in Medienbeiträgen umsetzen und veröffentlichen.",
       CYCLE_3, ["Präsentation gestalten", "Quellen angeben"]),
    _c("MI.2.2", "Medien und Informatik", "Informatik",
       "Die Schülerinnen und Schüler können einfache Problemstellungen analysieren und Lösungsverfahren als Programme umsetzen.",
       CYCLE_2, ["Abläufe beschreiben", "Einfache Programme schreiben"]),
    # Bewegung und Sport
    _c("BS.1.A.1", "Bewegung und Sport", "Laufen, Springen, Werfen",
       "Die Schülerinnen und Schüler können schnell laufen, weit und hoch springen sowie weit und gezielt werfen.",
       CYCLE_1, ["Sprungformen ausprobieren", "Zielwurf üben"]),
    _c("BS.4.B.1", "Bewegung und Sport", "Spielen",
       "Die Schülerinnen und Schüler können Sportspiele fair spielen und Regeln einhalten.",
       CYCLE_3, ["Fairplay-Regeln einhalten", "Taktik besprechen"]),
]


def get_competencies_by_area(area: str) -> List[CurriculumCompetency]:
    """Competencies whose subject area equals ``area`` (case-insensitive)."""
    wanted = area.strip().lower()
    return [c for c in LP21_COMPETENCIES if c.area.lower() == wanted]


def get_competencies_by_cycle(cycle: str) -> List[CurriculumCompetency]:
    return [c for c in LP21_COMPETENCIES if c.cycle == cycle]


def get_competency(competency_id: str) -> CurriculumCompetency | None:
    for c in LP21_COMPETENCIES:
        if c.id == competency_id:
            return c
    return None


def list_areas() -> List[str]:
    """Distinct subject areas in catalog order."""
    seen: List[str] = []
    for c in LP21_COMPETENCIES:
        if c.area not in seen:
            seen.append(c.area)
    return seen
