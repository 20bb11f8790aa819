# 활동 종류: 닫힌 열거형. 라벨/이모지/추천 문구가 모든 멤버에 빠짐없이 있어야 함 (import 시 검증)

from enum import Enum as PyEnum
from typing import Dict, List, NamedTuple


class ActivityType(str, PyEnum):
    """웨이브/상태/크루 채팅에 공통으로 쓰는 활동 종류. DB에는 String(20)으로 저장."""

    # Cardio & Endurance
    RUN = "RUN"
    WALK = "WALK"
    CYCLE = "CYCLE"
    SWIM = "SWIM"
    HIKE = "HIKE"
    ROWING = "ROWING"
    SURFING = "SURFING"
    SPINNING = "SPINNING"
    # Strength & Conditioning
    GYM = "GYM"
    CROSSFIT = "CROSSFIT"
    HYROX = "HYROX"
    STRETCHING = "STRETCHING"
    PILATES = "PILATES"
    # Racquet Sports
    TENNIS = "TENNIS"
    PICKLEBALL = "PICKLEBALL"
    BADMINTON = "BADMINTON"
    SQUASH = "SQUASH"
    # Team Sports
    BASKETBALL = "BASKETBALL"
    FOOTBALL = "FOOTBALL"
    VOLLEYBALL = "VOLLEYBALL"
    FRISBEE = "FRISBEE"
    # Combat & Martial Arts
    BOXING = "BOXING"
    MARTIAL_ARTS = "MARTIAL_ARTS"
    # Other Sports
    CLIMB = "CLIMB"
    GOLF = "GOLF"
    SKATEBOARD = "SKATEBOARD"
    DANCE = "DANCE"
    # Wellness & Recovery
    YOGA = "YOGA"
    MEDITATION = "MEDITATION"
    BREATHWORK = "BREATHWORK"
    ICE_BATH = "ICE_BATH"
    SAUNA = "SAUNA"
    # Self-Improvement
    BOOK_CLUB = "BOOK_CLUB"
    NUTRITION = "NUTRITION"
    # Flexible (필터에서 모든 활동과 호환)
    ANYTHING = "ANYTHING"

    @property
    def label(self) -> str:
        return ACTIVITY_CATALOG[self].label

    @property
    def emoji(self) -> str:
        return ACTIVITY_CATALOG[self].emoji

    @property
    def prompts(self) -> List[str]:
        return list(ACTIVITY_CATALOG[self].prompts)

    def is_compatible_with(self, other: "ActivityType") -> bool:
        """같은 활동이거나 둘 중 하나가 ANYTHING이면 호환."""
        return self is other or ActivityType.ANYTHING in (self, other)


class ActivityMeta(NamedTuple):
    label: str
    emoji: str
    prompts: tuple


ACTIVITY_CATALOG: Dict[ActivityType, ActivityMeta] = {
    ActivityType.RUN: ActivityMeta("Run", "🏃", ("First timer, be gentle", "Training for a race", "Chill pace, no pressure", "Exploring new routes")),
    ActivityType.WALK: ActivityMeta("Walk", "🚶", ("Coffee walk", "Nature walk", "Walking meeting", "Evening stroll")),
    ActivityType.CYCLE: ActivityMeta("Cycle", "🚴", ("Casual ride", "Scenic route vibes", "Training mode", "Coffee stop included")),
    ActivityType.SWIM: ActivityMeta("Swim", "🏊", ("Lap swimming", "Just want to float", "Open water curious", "Learning freestyle")),
    ActivityType.HIKE: ActivityMeta("Hike", "🥾", ("Easy trail", "Sunrise mission", "Nature therapy", "Photography stops")),
    ActivityType.ROWING: ActivityMeta("Rowing", "🚣", ("Dragon boat practice", "Kayaking trip", "Calm water paddle", "First timer welcome")),
    ActivityType.SURFING: ActivityMeta("Surfing", "🏄", ("Beginner waves", "Dawn patrol", "Paddleboard session", "Learning to surf")),
    ActivityType.SPINNING: ActivityMeta("Spinning", "🚲", ("High intensity", "Recovery ride", "Music-driven class", "Beginner friendly")),
    ActivityType.GYM: ActivityMeta("Gym", "💪", ("Leg day today", "Need a spotter", "Let's push each other", "Just started lifting")),
    ActivityType.CROSSFIT: ActivityMeta("CrossFit", "🏋️", ("WOD buddy", "Open gym session", "Competition prep", "Scaled workouts welcome")),
    ActivityType.HYROX: ActivityMeta("Hyrox", "🔥", ("Training partner", "Race prep", "First timer", "Workout buddy")),
    ActivityType.STRETCHING: ActivityMeta("Stretching", "🧎", ("Mobility session", "Post-workout stretch", "Flexibility goals", "Recovery focused")),
    ActivityType.PILATES: ActivityMeta("Pilates", "🤸", ("Mat pilates", "Reformer session", "Core focus", "Beginner friendly")),
    ActivityType.TENNIS: ActivityMeta("Tennis", "🎾", ("Casual rally", "Looking for doubles partner", "Any skill level", "Want to improve")),
    ActivityType.PICKLEBALL: ActivityMeta("Pickleball", "🏓", ("Just learned, be patient", "Competitive game", "Social doubles", "Morning session")),
    ActivityType.BADMINTON: ActivityMeta("Badminton", "🏸", ("Casual game", "Looking for doubles", "Any level welcome", "Weekly session")),
    ActivityType.SQUASH: ActivityMeta("Squash", "🎾", ("Friendly match", "Practice session", "Any level", "Looking to improve")),
    ActivityType.BASKETBALL: ActivityMeta("Basketball", "🏀", ("Casual shooting", "Need players for 3v3", "Just for fun", "Regular pickup game")),
    ActivityType.FOOTBALL: ActivityMeta("Football", "⚽", ("Casual kickabout", "Need players", "5-a-side", "Just for fun")),
    ActivityType.VOLLEYBALL: ActivityMeta("Volleyball", "🏐", ("Beach volleyball", "Indoor game", "Need players", "Casual rally")),
    ActivityType.FRISBEE: ActivityMeta("Frisbee", "🥏", ("Ultimate frisbee", "Casual throw", "Learning the game", "Pickup game")),
    ActivityType.BOXING: ActivityMeta("Boxing", "🥊", ("Bag work buddy", "Sparring partner", "Beginner friendly", "Cardio boxing")),
    ActivityType.MARTIAL_ARTS: ActivityMeta("Martial Arts", "🥋", ("Training partner", "Sparring session", "Learning together", "Any discipline")),
    ActivityType.CLIMB: ActivityMeta("Climb", "🧗", ("Bouldering buddy", "First time climber", "Outdoor climbing", "Belay partner needed")),
    ActivityType.GOLF: ActivityMeta("Golf", "⛳", ("Casual round", "Driving range", "Learning the game", "Social golf")),
    ActivityType.SKATEBOARD: ActivityMeta("Skateboard", "🛹", ("Cruising around", "Learning tricks", "Skatepark session", "Beginner welcome")),
    ActivityType.DANCE: ActivityMeta("Dance", "💃", ("Social dancing", "Learning together", "Any style", "Just for fun")),
    ActivityType.YOGA: ActivityMeta("Yoga", "🧘", ("Beginner friendly please", "Need to destress", "Outdoor session preferred", "Morning stretch")),
    ActivityType.MEDITATION: ActivityMeta("Meditation", "🧘‍♂️", ("Guided session", "Silent sit", "Mindfulness practice", "Beginner welcome")),
    ActivityType.BREATHWORK: ActivityMeta("Breathwork", "🌬️", ("Wim Hof style", "Relaxation focused", "Energy boost", "First timer")),
    ActivityType.ICE_BATH: ActivityMeta("Ice Bath", "🧊", ("First timer", "Post-workout recovery", "Building cold tolerance", "Regular practice")),
    ActivityType.SAUNA: ActivityMeta("Sauna", "🧖", ("Post-workout session", "Relaxation time", "Heat therapy", "Recovery day")),
    ActivityType.BOOK_CLUB: ActivityMeta("Book Club", "📚", ("Fiction lovers", "Self-help books", "Business books", "Monthly meetup")),
    ActivityType.NUTRITION: ActivityMeta("Nutrition", "🥗", ("Meal prep together", "Healthy cooking", "Diet accountability", "Recipe exchange")),
    ActivityType.ANYTHING: ActivityMeta("Anything", "🙌", ("Open to suggestions", "Surprise me", "Whatever works", "Flexible on activity")),
}

_missing = [t.value for t in ActivityType if t not in ACTIVITY_CATALOG]
if _missing:
    raise RuntimeError(f"ACTIVITY_CATALOG is missing activity types: {', '.join(_missing)}")


def parse_activity_type(value) -> ActivityType:
    """문자열/enum → ActivityType. 알 수 없는 값은 ValueError."""
    if isinstance(value, ActivityType):
        return value
    return ActivityType(str(value).strip().upper())
