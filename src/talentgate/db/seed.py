from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from talentgate.db.models import Commune, JobPosition, Wilaya

JOB_POSITIONS: list[dict[str, str]] = [
    {"name": "Software Engineer", "ar_name": "مهندس برمجيات"},
    {"name": "Frontend Developer", "ar_name": "مطور واجهة أمامية"},
    {"name": "Backend Developer", "ar_name": "مطور خلفية"},
    {"name": "Full Stack Developer", "ar_name": "مطور شامل"},
    {"name": "UI/UX Designer", "ar_name": "مصمم واجهة المستخدم"},
    {"name": "Project Manager", "ar_name": "مدير مشروع"},
    {"name": "Business Analyst", "ar_name": "محلل أعمال"},
    {"name": "Quality Assurance Engineer", "ar_name": "مهندس ضمان الجودة"},
    {"name": "DevOps Engineer", "ar_name": "مهندس عمليات التطوير"},
    {"name": "Data Scientist", "ar_name": "عالم بيانات"},
]

# (code, name, arabic name); each wilaya is seeded with its chef-lieu commune.
WILAYAS: list[tuple[int, str, str]] = [
    (1, "Adrar", "أدرار"),
    (2, "Chlef", "الشلف"),
    (3, "Laghouat", "الأغواط"),
    (4, "Oum El Bouaghi", "أم البواقي"),
    (5, "Batna", "باتنة"),
    (6, "Béjaïa", "بجاية"),
    (7, "Biskra", "بسكرة"),
    (8, "Béchar", "بشار"),
    (9, "Blida", "البليدة"),
    (10, "Bouira", "البويرة"),
    (11, "Tamanrasset", "تمنراست"),
    (12, "Tébessa", "تبسة"),
    (13, "Tlemcen", "تلمسان"),
    (14, "Tiaret", "تيارت"),
    (15, "Tizi Ouzou", "تيزي وزو"),
    (16, "Alger", "الجزائر"),
    (17, "Djelfa", "الجلفة"),
    (18, "Jijel", "جيجل"),
    (19, "Sétif", "سطيف"),
    (20, "Saïda", "سعيدة"),
    (21, "Skikda", "سكيكدة"),
    (22, "Sidi Bel Abbès", "سيدي بلعباس"),
    (23, "Annaba", "عنابة"),
    (24, "Guelma", "قالمة"),
    (25, "Constantine", "قسنطينة"),
    (26, "Médéa", "المدية"),
    (27, "Mostaganem", "مستغانم"),
    (28, "M'Sila", "المسيلة"),
    (29, "Mascara", "معسكر"),
    (30, "Ouargla", "ورقلة"),
    (31, "Oran", "وهران"),
    (32, "El Bayadh", "البيض"),
    (33, "Illizi", "إليزي"),
    (34, "Bordj Bou Arréridj", "برج بوعريريج"),
    (35, "Boumerdès", "بومرداس"),
    (36, "El Tarf", "الطارف"),
    (37, "Tindouf", "تندوف"),
    (38, "Tissemsilt", "تيسمسيلت"),
    (39, "El Oued", "الوادي"),
    (40, "Khenchela", "خنشلة"),
    (41, "Souk Ahras", "سوق أهراس"),
    (42, "Tipaza", "تيبازة"),
    (43, "Mila", "ميلة"),
    (44, "Aïn Defla", "عين الدفلى"),
    (45, "Naâma", "النعامة"),
    (46, "Aïn Témouchent", "عين تموشنت"),
    (47, "Ghardaïa", "غرداية"),
    (48, "Relizane", "غليزان"),
    (49, "Timimoun", "تيميمون"),
    (50, "Bordj Badji Mokhtar", "برج باجي مختار"),
    (51, "Ouled Djellal", "أولاد جلال"),
    (52, "Béni Abbès", "بني عباس"),
    (53, "In Salah", "عين صالح"),
    (54, "In Guezzam", "عين قزام"),
    (55, "Touggourt", "تقرت"),
    (56, "Djanet", "جانت"),
    (57, "El M'Ghair", "المغير"),
    (58, "El Meniaa", "المنيعة"),
]

CHEF_LIEU_OVERRIDES: dict[int, str] = {
    4: "Oum El Bouaghi",
    16: "Alger Centre",
    45: "Naâma",
    58: "El Menia",
}


def seed_reference_data(session: Session) -> dict[str, int]:
    inserted_wilayas = 0
    inserted_communes = 0
    existing = set(session.scalars(select(Wilaya.id)).all())
    missing = [item for item in WILAYAS if item[0] not in existing]
    for code, name, ar_name in missing:
        session.add(Wilaya(id=code, name=name, ar_name=ar_name))
        inserted_wilayas += 1
    session.flush()

    for code, name, _ in missing:
        session.add(Commune(wilaya_id=code, name=CHEF_LIEU_OVERRIDES.get(code, name)))
        inserted_communes += 1
    session.commit()
    return {"wilayas": inserted_wilayas, "communes": inserted_communes}


def seed_job_positions(session: Session) -> int:
    if session.scalar(select(func.count()).select_from(JobPosition)):
        return 0

    for item in JOB_POSITIONS:
        session.add(JobPosition(name=item["name"], ar_name=item["ar_name"]))
    session.commit()
    return len(JOB_POSITIONS)
