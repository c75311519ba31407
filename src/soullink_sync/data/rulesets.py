"""Preset rulesets referenced by ``rulesetId`` on tracker documents."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

DEFAULT_RULESET_ID = "default_ruleset_en"
GERMAN_RULESET_ID = "default_ruleset"


class Ruleset(BaseModel):
    id: str
    name: str
    description: str = ""
    rules: List[str] = Field(default_factory=list)
    is_preset: bool = False


DEFAULT_RULES: List[str] = [
    "Only the first Pokémon encountered on each route/area may be caught. This Pokémon is linked to the partner's Pokémon.",
    "Pokémon that have already been caught/encountered (or are in the same evolution line) do not count as route Pokémon and may be rerolled. Maximum 2 additional attempts.",
    "Gift/static Pokémon and fossils do not count as area Pokémon and may be used (even if already caught, also linked to a partner). Identical statics and fossils may only be used once.",
    "If a Pokémon flees or faints during the catch attempt, the area is lost. The linked soul partner must be released.",
    "Every Pokémon receives a nickname chosen by the soul partner.",
    "Defeated Pokémon are considered dead and, together with their soul partner, must be placed in a grave box. (If already in battle, they may be used until the fight ends.)",
    "Pokémon, items, and trainers are randomized.",
    "The bonus shop is randomized; each item may only be purchased once.",
    "The level cap must not be exceeded (1 Pokémon may be above, the rest must be below). Overleveled Pokémon and their soul partner may not be used until the level cap increases again.",
    "Rare Candy may be used directly BEFORE Gym Leader/Elite Four/Champion/Rival fights. They may also be used to bring Pokémon up to the level cap of the last gym.",
    "Battle style is set to 'Shift'.",
    "Items in battle may only be used if the opponent also uses one. In the Elite Four, a maximum of 20 items may be used outside of battles.",
    "Shiny Pokémon may always be caught and may be swapped in freely.",
    "The challenge is lost when the entire team of one player is defeated.",
    "The challenge is completed when the Champion of the region has been defeated.",
    "The challenge starts as soon as you receive your first Poké Balls.",
    "No Googling during Gym/Elite Four/Rival/Boss fights.",
    "Maximum of 2 legendary Pokémon per team.",
]

GERMAN_RULES: List[str] = [
    "Pro Route/Gebiet darf nur das erste Pokémon gefangen werden. Diese Pokémon ist mit dem Pokémon des Partners verbunden.",
    "Pokémon, die bereits gefangen/encountered wurden (oder deren Evolutionsreihe) zählen nicht als Routen Pokémon und dürfen gererolled werden. Es gibt max. 2 weitere Versuche.",
    "Geschenkte/Statische Pokémon & Fossile gelten nicht als Gebietspokémon und dürfen verwendet werden (auch wenn bereits gefangen, auch mit Partner verbunden). Identische Statics & Fossile dürfen nur einmal verwendet werden.",
    "Wenn ein Pokémon beim Fangversuch flieht/stirbt, zählt das Gebiet als verloren. Der Seelenpartner muss freigelassen werden.",
    "Jedes Pokémon erhält einen Spitznamen, den der Seelenpartner auswählt.",
    "Besiegte Pokémon gelten als verstorben und müssen so wie ihr Seelenpartner in eine Grab-Box. (Wenn bereits im Kampf, Verwendung bis zum Ende)",
    "Pokémon, Items, und Trainer sind gerandomized.",
    "Der Bonusshop ist gerandomized, jedes Item darf max. 1 mal gekauft werden.",
    "Das Level-Cap darf nicht überschritten werden (1 Pokémon auf höherem Level, restliche auf niedrigerem). Überlevelte Pokémon sowie ihr Seelenpartner dürfen nicht verwendet werden, bis der Level-Cap wieder ansteigt.",
    "Sonderbonbons dürfen direkt VOR Arenaleiter/Top-4/Champion/Rivalen verwendet werden. Sie dürfen außerdem verwendet werden um Pokémon auf das Level-Cap der letzten Arena zu bringen.",
    "Kampffolge wird auf 'Folgen' gestellt.",
    "Gegenstände im Kampf nur, wenn der Gegner auch einen verwendet. In der Top 4 max. 20 Items außerhalb von Kämpfen",
    "Shiny Pokémon dürfen immer gefangen und nach belieben ausgetauscht werden.",
    "Challenge verloren, wenn das komplette Team eines Spielers besiegt wurde.",
    "Challenge geschafft, wenn der Champ der Region besiegt wurde.",
    "Challenge startet sobald man die ersten Pokébälle erhalten hat.",
    "Kein Googlen während Arena/Top-4/Rivalen/Boss-Kämpfen",
    "Max. 2 legendäre Pokémon pro Team",
]

PRESET_RULESETS: Dict[str, Ruleset] = {
    DEFAULT_RULESET_ID: Ruleset(
        id=DEFAULT_RULESET_ID,
        name="Hardcore Rules (EN)",
        description="Hardcore rules for Soullink runs in English.",
        rules=DEFAULT_RULES,
        is_preset=True,
    ),
    GERMAN_RULESET_ID: Ruleset(
        id=GERMAN_RULESET_ID,
        name="Hardcore-Regeln (DE)",
        description="Hardcore-Regeln für Soullink-Runs in Deutsch.",
        rules=GERMAN_RULES,
        is_preset=True,
    ),
}


def get_ruleset(ruleset_id: Optional[str]) -> Ruleset:
    """Look up a preset ruleset, falling back to the default one."""
    if ruleset_id and ruleset_id in PRESET_RULESETS:
        return PRESET_RULESETS[ruleset_id]
    return PRESET_RULESETS[DEFAULT_RULESET_ID]
