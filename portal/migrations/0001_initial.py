import django.contrib.auth.models
import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

import portal.models


SECTORS = [
    ('10º Andar ( CENTRO CIRÚRGICO )', '10º Andar ( CENTRO CIRÚRGICO )'),
    ('9º Andar ( OFTALMOLOGIA )', '9º Andar ( OFTALMOLOGIA )'),
    ('8º Andar ( CLÍNICA MÉDICA / CARDIOLOGIA )', '8º Andar ( CLÍNICA MÉDICA / CARDIOLOGIA )'),
    ('7º Andar ( PEDIATRIA / OTORRINO )', '7º Andar ( PEDIATRIA / OTORRINO )'),
    ('6º Andar ( GINECOLOGIA / OBSTETRÍCIA )', '6º Andar ( GINECOLOGIA / OBSTETRÍCIA )'),
    ('5º Andar ( ORTOPEDIA / VASCULAR )', '5º Andar ( ORTOPEDIA / VASCULAR )'),
    ('4º Andar ( ESP CIRÚRGICAS / DERMATOLOGIA )', '4º Andar ( ESP CIRÚRGICAS / DERMATOLOGIA )'),
    ('3º Andar ( SARA )', '3º Andar ( SARA )'),
    ('2º Andar ( PSIQUISTRIA )', '2º Andar ( PSIQUISTRIA )'),
    ('CDU - CENTRO DE DIAGNÓSTICO UNIMED', 'CDU - CENTRO DE DIAGNÓSTICO UNIMED'),
    ('Térreo ( RECEPÇÃO / TRIAGEM )', 'Térreo ( RECEPÇÃO / TRIAGEM )'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='Profile',
            fields=[
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('username', models.CharField(error_messages={'unique': 'A user with that username already exists.'}, help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.', max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('email', models.EmailField(blank=True, max_length=254, verbose_name='email address')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('id', models.CharField(default=portal.models._new_id, editable=False, max_length=64, primary_key=True, serialize=False)),
                ('name', models.CharField(blank=True, max_length=255)),
                ('role', models.CharField(choices=[('doctor', 'Doctor'), ('reception', 'Reception')], db_index=True, default='reception', max_length=16)),
                ('specialty', models.CharField(blank=True, max_length=512)),
                ('phone', models.CharField(blank=True, max_length=32)),
                ('avatar', models.URLField(blank=True, max_length=512)),
                ('status', models.CharField(blank=True, choices=[('active', 'Active'), ('inactive', 'Inactive'), ('vacation', 'Vacation'), ('online', 'Online'), ('offline', 'Offline')], max_length=16, null=True)),
                ('gender', models.CharField(choices=[('male', 'Male'), ('female', 'Female')], default='male', max_length=8)),
                ('is_admin', models.BooleanField(default=False)),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'db_table': 'profiles',
            },
            managers=[
                ('objects', django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name='Room',
            fields=[
                ('id', models.CharField(default=portal.models._new_id, editable=False, max_length=64, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=255)),
                ('extension', models.CharField(blank=True, max_length=32)),
                ('sector', models.CharField(choices=SECTORS, db_index=True, max_length=128)),
                ('order', models.IntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'rooms',
                'ordering': ['order', 'created_at'],
            },
        ),
        migrations.CreateModel(
            name='RoomAllocation',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('date', models.DateField(db_index=True)),
                ('shift', models.CharField(choices=[('morning', 'Manhã'), ('afternoon', 'Tarde')], max_length=16)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='allocations_created', to=settings.AUTH_USER_MODEL)),
                ('doctor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='allocations', to=settings.AUTH_USER_MODEL)),
                ('room', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='allocations', to='portal.room')),
            ],
            options={
                'db_table': 'room_allocations',
                'indexes': [models.Index(fields=['date', 'room'], name='room_alloc_date_room_idx')],
                'constraints': [models.UniqueConstraint(fields=('room', 'date', 'shift'), name='uniq_room_date_shift')],
            },
        ),
    ]
